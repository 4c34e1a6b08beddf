"""Named cache instances owned by the host application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .core import TTLCache


@dataclass(slots=True)
class CacheRegistry:
    """Caches used by the response pipeline, built once per process."""

    knowledge: TTLCache
    research: TTLCache

    @classmethod
    def from_config(cls, cache_cfg) -> "CacheRegistry":
        return cls(
            knowledge=TTLCache(
                cache_cfg.KNOWLEDGE_MAX_SIZE, cache_cfg.KNOWLEDGE_TTL, name="knowledge"
            ),
            research=TTLCache(
                cache_cfg.RESEARCH_MAX_SIZE, cache_cfg.RESEARCH_TTL, name="research"
            ),
        )

    def metrics(self) -> dict[str, dict[str, Any]]:
        return {
            "knowledge": self.knowledge.metrics(),
            "research": self.research.metrics(),
        }

    def clear(self) -> None:
        self.knowledge.clear()
        self.research.clear()


__all__ = ["CacheRegistry"]
