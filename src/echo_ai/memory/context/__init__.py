"""
Per-user context acquisition.

``gate``
    :class:`~echo_ai.memory.context.gate.ContextGate` decides whether a message
    needs a clarifying round-trip and tracks pending questions.
``rules``
    The declarative rule table and the clarifying question texts.
``model``
    :class:`PendingContext` and :class:`UserContext` records.
"""

from .gate import ContextGate
from .model import PendingContext, UserContext
from .rules import DEFAULT_RULES, ContextRule, question_for

__all__ = [
    "ContextGate",
    "PendingContext",
    "UserContext",
    "ContextRule",
    "DEFAULT_RULES",
    "question_for",
]
