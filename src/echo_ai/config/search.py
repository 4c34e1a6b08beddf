import os

from .loader import section


class Search:
    def __init__(self, config: dict | None = None) -> None:
        search_cfg = section(config, "search")
        enabled_raw = search_cfg.get("enabled", os.getenv("WEB_SEARCH_ENABLED", "1"))
        self.ENABLED: bool = str(enabled_raw).lower() in ("1", "true", "yes")
        self.ENDPOINT: str = str(
            search_cfg.get("endpoint", os.getenv("WEB_SEARCH_ENDPOINT", "https://api.tavily.com/search"))
        )
        self.MAX_RESULTS: int = int(search_cfg.get("max_results", os.getenv("WEB_SEARCH_MAX_RESULTS", "5")))
        self.SEARCH_DEPTH: str = str(search_cfg.get("search_depth", os.getenv("WEB_SEARCH_DEPTH", "basic")))
