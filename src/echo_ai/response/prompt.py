"""
System prompt assembly.

:class:`PromptBuilder` starts from the configured base prompt and appends
only the blocks that have content, in a fixed order: user context,
knowledge base entries, web results, topic guidance.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping, Sequence

from echo_ai.clients.search import format_results
from echo_ai.interfaces import KnowledgeEntry, SearchResult
from echo_ai.rules import contains_any, first_match

from .sections import FALLBACK_PROMPT, TOPIC_RULES, TopicRule

logger = logging.getLogger(__name__)

WEB_SEARCH_TRIGGERS: tuple[str, ...] = ("how to", "error", "problem")
TRUNCATION_NOTE = "\n[Note: The prompt was truncated due to length.]"

_WHITESPACE = re.compile(r"\s+")


def optimize(text: Any, max_length: int = 8000) -> str:
    """Collapse whitespace and hard-truncate ``text`` past ``max_length``."""

    if not isinstance(text, str):
        text = str(text)
    collapsed = _WHITESPACE.sub(" ", text).strip()
    if len(collapsed) > max_length:
        return collapsed[:max_length] + TRUNCATION_NOTE
    return collapsed


class PromptBuilder:
    def __init__(
        self,
        base_prompt: Any,
        *,
        web_formatter: Callable[[Sequence[SearchResult]], str] | None = None,
        max_knowledge: int = 3,
        topic_rules: Sequence[TopicRule] = TOPIC_RULES,
    ) -> None:
        if not isinstance(base_prompt, str):
            logger.warning("Base prompt is %s, using fallback prompt", type(base_prompt).__name__)
            base_prompt = FALLBACK_PROMPT
        self.base_prompt = base_prompt
        self.web_formatter = web_formatter or format_results
        self.max_knowledge = max_knowledge
        self.topic_rules = tuple(topic_rules)

    @staticmethod
    def wants_web_search(message: str) -> bool:
        return contains_any(message, WEB_SEARCH_TRIGGERS)

    def build(
        self,
        message: str,
        context_data: Mapping[str, Any] | None = None,
        knowledge_results: Sequence[KnowledgeEntry] | None = None,
        web_results: Sequence[SearchResult] | None = None,
    ) -> str:
        """Return the system prompt for ``message``."""

        sections = [self.base_prompt]

        if context_data:
            sections.append(self._render_context(context_data))

        if knowledge_results:
            sections.append(self._render_knowledge(knowledge_results))

        if web_results and self.wants_web_search(message):
            rendered = self.web_formatter(web_results)
            if rendered:
                sections.append("### Web Results\n" + rendered)

        topic = first_match(message, self.topic_rules)
        if topic is not None:
            sections.append(topic.guidelines)

        return "\n\n".join(sections)

    # ------------------------------------------------------------------ #

    @staticmethod
    def _render_context(context_data: Mapping[str, Any]) -> str:
        lines = [f"- {key}: {value}" for key, value in context_data.items()]
        return "### User Context\n" + "\n".join(lines)

    def _render_knowledge(self, entries: Sequence[KnowledgeEntry]) -> str:
        blocks = []
        for entry in entries[: self.max_knowledge]:
            blocks.append(f"**{entry.title}**\nCategory: {entry.category}\n{entry.content}")
        return "### Knowledge Base\n" + "\n\n".join(blocks)


__all__ = ["PromptBuilder", "optimize", "WEB_SEARCH_TRIGGERS", "TRUNCATION_NOTE"]
