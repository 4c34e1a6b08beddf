"""
Contracts for the collaborators the response pipeline talks to.

The orchestrator depends only on these protocols. Concrete implementations
live in :mod:`echo_ai.memory.sql` (history and knowledge) and
:mod:`echo_ai.clients` (model providers and web search); tests substitute
in-memory fakes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Protocol, Sequence


@dataclass(slots=True)
class KnowledgeEntry:
    title: str
    content: str
    category: str
    rating: float = 0.0
    id: int | None = None


@dataclass(slots=True)
class SearchResult:
    title: str
    url: str
    snippet: str
    score: float | None = None


@dataclass(slots=True, frozen=True)
class DecodingParams:
    model: str
    temperature: float = 0.7
    max_tokens: int = 1500
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class HistoryStore(Protocol):
    async def get_recent_history(self, user_id: str, limit: int) -> list[dict[str, str]]: ...

    async def save_message(self, user_id: str, content: str, is_assistant: bool) -> None: ...

    async def clear_history(self, user_id: str) -> None: ...


class KnowledgeStore(Protocol):
    async def search_knowledge(self, query: str) -> list[KnowledgeEntry]: ...


class WebSearchProvider(Protocol):
    async def search(self, query: str) -> list[SearchResult]: ...

    def format_results(self, results: Sequence[SearchResult]) -> str: ...


class ModelProvider(Protocol):
    async def complete(self, messages: list[dict[str, str]], params: DecodingParams) -> str: ...


__all__ = [
    "KnowledgeEntry",
    "SearchResult",
    "DecodingParams",
    "HistoryStore",
    "KnowledgeStore",
    "WebSearchProvider",
    "ModelProvider",
]
