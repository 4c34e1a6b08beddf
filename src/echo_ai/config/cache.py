import os

from .loader import section


class Cache:
    def __init__(self, config: dict | None = None) -> None:
        cache_cfg = section(config, "cache")
        self.KNOWLEDGE_MAX_SIZE: int = int(
            cache_cfg.get("knowledge_max_size", os.getenv("KNOWLEDGE_CACHE_SIZE", "200"))
        )
        self.KNOWLEDGE_TTL: float = float(
            cache_cfg.get("knowledge_ttl", os.getenv("KNOWLEDGE_CACHE_TTL", "1800"))
        )
        self.RESEARCH_MAX_SIZE: int = int(
            cache_cfg.get("research_max_size", os.getenv("RESEARCH_CACHE_SIZE", "100"))
        )
        self.RESEARCH_TTL: float = float(
            cache_cfg.get("research_ttl", os.getenv("RESEARCH_CACHE_TTL", "86400"))
        )
