"""
Per-user clarifying-question state machine.

A user is either idle or awaiting context. :meth:`ContextGate.ask` moves a
user to awaiting by recording the question that could not be answered yet;
:meth:`ContextGate.resolve` consumes the user's next message as the missing
value and returns the stored question so it can finally be answered.

All state is in memory. Callers that interleave awaits between reading and
writing a user's state must hold :meth:`ContextGate.lock` for that user.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping, Sequence

from echo_ai.rules import first_match

from .model import PendingContext, UserContext
from .rules import DEFAULT_RULES, ContextRule, question_for

logger = logging.getLogger(__name__)


class ContextGate:
    def __init__(self, rules: Sequence[ContextRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)
        self._pending: dict[str, PendingContext] = {}
        self._contexts: dict[str, UserContext] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------ #
    # Rule evaluation
    # ------------------------------------------------------------------ #

    def needs_additional_context(
        self,
        message: str,
        user_id: str,
        known: Mapping[str, str] | None = None,
    ) -> list[str]:
        """
        Return the context keys still missing before ``message`` can be answered.

        ``known`` defaults to the user's stored context. An empty list means the
        message can be answered right away.
        """
        rule = first_match(message, self.rules)
        if rule is None:
            return []

        if known is None:
            known = self.user_context(user_id)
        return [key for key in rule.wanted_keys() if not known.get(key)]

    # ------------------------------------------------------------------ #
    # Pending questions
    # ------------------------------------------------------------------ #

    def pending(self, user_id: str) -> PendingContext | None:
        return self._pending.get(user_id)

    def ask(self, user_id: str, question: str, missing: Iterable[str]) -> str:
        """Record ``question`` as pending and return the clarifying prompt."""

        missing = list(missing)
        if not missing:
            raise ValueError("ask() needs at least one missing context key")

        pending = PendingContext(
            user_id=user_id,
            original_question=question,
            context_type=missing[0],
        )
        self._pending[user_id] = pending
        logger.info("Awaiting '%s' from user %s before answering", pending.context_type, user_id)
        return question_for(pending.context_type)

    def resolve(self, user_id: str, answer: str) -> PendingContext | None:
        """
        Store ``answer`` for the pending context type and clear the pending entry.

        Returns the consumed :class:`PendingContext`, or ``None`` when the user
        had nothing pending.
        """
        pending = self._pending.pop(user_id, None)
        if pending is None:
            return None

        self.save_user_context(user_id, pending.context_type, answer)
        logger.info("Resolved '%s' for user %s", pending.context_type, user_id)
        return pending

    # ------------------------------------------------------------------ #
    # Stored user context
    # ------------------------------------------------------------------ #

    def save_user_context(self, user_id: str, context_type: str, value: str) -> None:
        ctx = self._contexts.get(user_id)
        if ctx is None:
            ctx = self._contexts[user_id] = UserContext(user_id=user_id)
        ctx.update(context_type, value)

    def user_context(self, user_id: str) -> dict[str, str]:
        """Return a copy of the stored fields for ``user_id``."""

        ctx = self._contexts.get(user_id)
        return dict(ctx.fields) if ctx else {}

    def get_user_context(self, user_id: str) -> UserContext | None:
        return self._contexts.get(user_id)

    def clear_user(self, user_id: str) -> None:
        """
        Forget the stored context and any pending question for ``user_id``.

        The user's lock is kept: requests may already be queued on it.
        """

        self._contexts.pop(user_id, None)
        self._pending.pop(user_id, None)

    # ------------------------------------------------------------------ #
    # Concurrency
    # ------------------------------------------------------------------ #

    def lock(self, user_id: str) -> asyncio.Lock:
        """Return the lock serializing requests from ``user_id``."""

        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock


__all__ = ["ContextGate"]
