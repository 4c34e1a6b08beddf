"""
Repositories (SQL-only)
=======================
- Conversation history and knowledge base CRUD.
- Blocking sqlite calls run in a worker thread under a shared asyncio lock.
- ``sqlite3.Error`` is re-raised as :class:`~echo_ai.errors.DatabaseError`.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from typing import Callable, Iterable, Optional, TypeVar

from echo_ai.errors import DatabaseError
from echo_ai.interfaces import KnowledgeEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Repo:
    def __init__(self, conn: sqlite3.Connection, lock: asyncio.Lock):
        self.conn = conn
        self._lock = lock

    async def _run(self, fn: Callable[[], T], what: str) -> T:
        async with self._lock:
            try:
                return await asyncio.to_thread(fn)  # blocking sqlite call
            except sqlite3.Error as exc:
                logger.error("SQLite %s failed: %s", what, exc)
                raise DatabaseError(f"{what} failed: {exc}") from exc


class HistoryRepo(_Repo):
    """Per-user conversation log used to replay recent turns to the model."""

    async def get_recent_history(self, user_id: str, limit: int = 10) -> list[dict[str, str]]:
        """Return up to ``limit`` messages for ``user_id`` ordered oldest -> newest."""
        sql = """
            SELECT content, is_assistant FROM conversation_history
            WHERE user_id=?
            ORDER BY id DESC LIMIT ?
        """

        def _query() -> list[dict[str, str]]:
            rows = self.conn.execute(sql, (str(user_id), limit)).fetchall()
            return [
                {"role": "assistant" if row["is_assistant"] else "user", "content": row["content"]}
                for row in reversed(rows)
            ]

        return await self._run(_query, "history lookup")

    async def save_message(self, user_id: str, content: str, is_assistant: bool = False) -> None:
        sql = """
            INSERT INTO conversation_history (user_id, content, is_assistant, ts)
            VALUES (?, ?, ?, ?)
        """

        def _insert() -> None:
            with self.conn:
                self.conn.execute(sql, (str(user_id), content, int(is_assistant), time.time()))

        await self._run(_insert, "history write")

    async def clear_history(self, user_id: str) -> int:
        """Delete every stored message for ``user_id``; returns the row count."""

        def _delete() -> int:
            with self.conn:
                cur = self.conn.execute(
                    "DELETE FROM conversation_history WHERE user_id=?", (str(user_id),)
                )
                return cur.rowcount

        return await self._run(_delete, "history clear")


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class KnowledgeRepo(_Repo):
    """Curated knowledge base entries surfaced to the prompt builder."""

    SEARCH_LIMIT = 3

    async def search_knowledge(self, query: str, limit: int | None = None) -> list[KnowledgeEntry]:
        """
        Return verified entries matching ``query`` in title, content or tags.

        Results are ranked by use count then rating, capped at ``limit``
        (three by default), and each returned entry's use count is bumped.
        """
        limit = self.SEARCH_LIMIT if limit is None else limit
        query = (query or "").strip()
        if not query:
            return []

        like = f"%{_escape_like(query)}%"
        clauses = ["title LIKE ? ESCAPE '\\'", "content LIKE ? ESCAPE '\\'"]
        params: list[object] = [like, like]
        for token in dict.fromkeys(query.lower().split()):
            clauses.append("(',' || tags || ',') LIKE ? ESCAPE '\\'")
            params.append(f"%,{_escape_like(token)},%")

        sql = f"""
            SELECT id, title, content, category, rating FROM knowledge_entries
            WHERE is_verified=1 AND ({" OR ".join(clauses)})
            ORDER BY use_count DESC, rating DESC, id ASC
            LIMIT ?
        """
        params.append(limit)

        def _query() -> list[KnowledgeEntry]:
            with self.conn:
                rows = self.conn.execute(sql, params).fetchall()
                self.conn.executemany(
                    "UPDATE knowledge_entries SET use_count=use_count+1 WHERE id=?",
                    [(row["id"],) for row in rows],
                )
            return [
                KnowledgeEntry(
                    title=row["title"],
                    content=row["content"],
                    category=row["category"],
                    rating=row["rating"],
                    id=row["id"],
                )
                for row in rows
            ]

        return await self._run(_query, "knowledge search")

    async def save_entry(
        self,
        title: str,
        content: str,
        category: str = "general",
        tags: Iterable[str] = (),
        created_by: Optional[str] = None,
        *,
        verified: bool = False,
    ) -> int:
        """Insert a new entry and return its id. Tags are stored lowercased."""
        sql = """
            INSERT INTO knowledge_entries
              (title, content, category, tags, created_by, is_verified, created_ts)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        tag_text = ",".join(tag.strip().lower() for tag in tags if tag.strip())

        def _insert() -> int:
            with self.conn:
                cur = self.conn.execute(
                    sql,
                    (title, content, category, tag_text, created_by, int(verified), time.time()),
                )
                return int(cur.lastrowid)

        return await self._run(_insert, "knowledge insert")

    async def rate_entry(self, entry_id: int, rating: float) -> float:
        """Fold ``rating`` into the entry's running average and return the new value."""

        def _rate() -> float | None:
            with self.conn:
                row = self.conn.execute(
                    "SELECT rating, rating_count FROM knowledge_entries WHERE id=?", (entry_id,)
                ).fetchone()
                if row is None:
                    return None
                count = row["rating_count"] + 1
                new_rating = (row["rating"] * row["rating_count"] + rating) / count
                self.conn.execute(
                    "UPDATE knowledge_entries SET rating=?, rating_count=? WHERE id=?",
                    (new_rating, count, entry_id),
                )
                return new_rating

        result = await self._run(_rate, "knowledge rating")
        if result is None:
            raise KeyError(f"Knowledge entry {entry_id} not found")
        return result

    async def verify_entry(self, entry_id: int) -> bool:
        def _verify() -> bool:
            with self.conn:
                cur = self.conn.execute(
                    "UPDATE knowledge_entries SET is_verified=1 WHERE id=?", (entry_id,)
                )
                return cur.rowcount > 0

        return await self._run(_verify, "knowledge verify")

    async def popular_entries(self, category: str | None = None, limit: int = 10) -> list[KnowledgeEntry]:
        """Most used entries, optionally within one category."""
        where = "WHERE category=?" if category else ""
        params: tuple = (category, limit) if category else (limit,)
        sql = f"""
            SELECT id, title, content, category, rating FROM knowledge_entries
            {where}
            ORDER BY use_count DESC, rating DESC, id ASC
            LIMIT ?
        """

        def _query() -> list[KnowledgeEntry]:
            rows = self.conn.execute(sql, params).fetchall()
            return [KnowledgeEntry(**dict(row)) for row in rows]

        return await self._run(_query, "knowledge listing")


__all__ = ["HistoryRepo", "KnowledgeRepo"]
