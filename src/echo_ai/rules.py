"""
Keyword rule matching shared by context gating and prompt topic routing.

Rules are plain data objects exposing a ``keywords`` tuple. Matching is a
case-insensitive substring test and the first matching rule wins.
"""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence, TypeVar


class KeywordRule(Protocol):
    keywords: Sequence[str]


R = TypeVar("R", bound=KeywordRule)


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def first_match(text: str, rules: Iterable[R]) -> R | None:
    """Return the first rule whose keywords appear in ``text``."""

    for rule in rules:
        if contains_any(text, rule.keywords):
            return rule
    return None


__all__ = ["KeywordRule", "contains_any", "first_match"]
