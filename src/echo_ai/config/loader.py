from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict


DEFAULT_CONFIG_PATH = Path("config.toml")


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load the unified application config (config.toml by default).

    ``ECHO_CONFIG`` overrides the default location. Returns an empty dict when
    the file is missing so callers can fall back to environment variables.
    """
    if path is None:
        path = os.getenv("ECHO_CONFIG") or DEFAULT_CONFIG_PATH
    target = Path(path)
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


def section(config: dict | None, name: str) -> Dict[str, Any]:
    """Return ``[echo.<name>]`` from a raw config, or an empty dict."""

    return (config or {}).get("echo", {}).get(name, {})


__all__ = ["load_raw_config", "section", "DEFAULT_CONFIG_PATH"]
