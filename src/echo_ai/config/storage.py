import os
from pathlib import Path

_DEFAULT_SQLITE_PATH = Path(__file__).resolve().parent.parent.parent.parent / "data" / "echo.db"


class Storage:
    def __init__(self, config: dict | None = None) -> None:
        storage_cfg = (config or {}).get("echo", {}).get("storage", {})
        self.SQLITE_PATH: str = str(
            storage_cfg.get("sqlite_path", os.getenv("SQLITE_PATH", str(_DEFAULT_SQLITE_PATH)))
        )
