"""
SQLite bootstrap and connection helpers
=======================================

- Database path comes from ``config.storage.SQLITE_PATH`` unless overridden.
- WAL + pragmatic PRAGMAs for decent concurrent read perf.
"""

from __future__ import annotations

import pathlib
import sqlite3
from typing import Optional


def connect(path: Optional[str] = None) -> sqlite3.Connection:
    if path is None:
        from echo_ai.config import storage

        path = storage.SQLITE_PATH
    if path != ":memory:":
        pathlib.Path(path).parent.mkdir(parents=True, exist_ok=True)

    # Autocommit; we use explicit `with conn:` blocks in worker threads.
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=False,
    )

    # Pragmas: order matters a bit; set WAL first, then tuning.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    # Reduce SQLITE_BUSY errors under contention
    conn.execute("PRAGMA busy_timeout=3000;")    # 3s

    # dict-like rows
    conn.row_factory = sqlite3.Row

    return conn


def migrate(conn: sqlite3.Connection) -> None:
    """
    Execute schema.sql (idempotent). Every statement uses IF NOT EXISTS.
    """
    schema_file = pathlib.Path(__file__).with_name("schema.sql")
    sql = schema_file.read_text(encoding="utf-8")
    with conn:  # single transaction for the whole migration
        conn.executescript(sql)


def wal_checkpoint_truncate(conn: sqlite3.Connection) -> None:
    """Run a WAL checkpoint + truncate to keep WAL from growing unbounded."""
    conn.execute("PRAGMA wal_checkpoint(TRUNCATE);")


__all__ = ["connect", "migrate", "wal_checkpoint_truncate"]
