from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(slots=True, frozen=True)
class PendingContext:
    """A clarifying question waiting for the user's next message."""

    user_id: str
    original_question: str
    context_type: str


@dataclass(slots=True)
class UserContext:
    """Facts a user has supplied, keyed by context type (``os``, ``version``...)."""

    user_id: str
    fields: dict[str, str] = field(default_factory=dict)
    last_updated: datetime | None = None

    def update(self, key: str, value: str) -> None:
        self.fields[key] = value
        self.last_updated = datetime.now(timezone.utc)


__all__ = ["PendingContext", "UserContext"]
