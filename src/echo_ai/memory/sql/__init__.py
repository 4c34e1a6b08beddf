"""SQLite persistence for conversation history and the knowledge base."""

from .db import connect, migrate
from .repositories import HistoryRepo, KnowledgeRepo

__all__ = ["connect", "migrate", "HistoryRepo", "KnowledgeRepo"]
