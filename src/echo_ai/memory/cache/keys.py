"""Cache key normalization."""

import re

MAX_KEY_CONTENT = 100

_WHITESPACE = re.compile(r"\s+")


def generate_key(kind: str, content) -> str:
    """
    Build a stable key such as ``"knowledge:how do i install"``.

    Content is trimmed, lowercased and whitespace-collapsed so inputs that
    differ only in casing or spacing share a key, then cut to
    ``MAX_KEY_CONTENT`` characters.
    """
    normalized = _WHITESPACE.sub(" ", str(content).strip().lower())
    return f"{kind}:{normalized[:MAX_KEY_CONTENT]}"


__all__ = ["generate_key", "MAX_KEY_CONTENT"]
