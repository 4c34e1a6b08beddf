"""
Split long replies into transport-sized parts.

Fenced code blocks are never split. Prose is packed paragraph by paragraph,
falling back to sentences and then to word wrapping when a single unit is
too long. Every part is prefixed with a ``[Part i/N]`` label.
"""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 1900
# Widest label we expect to emit, including its trailing newline.
LABEL_RESERVE = len("[Part 999/999]\n")

_CODE_FENCE = re.compile(r"(```[\s\S]*?```)")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True, slots=True)
class Chunk:
    index: int
    total: int
    text: str

    @property
    def label(self) -> str:
        return f"[Part {self.index}/{self.total}]"

    def render(self) -> str:
        return f"{self.label}\n{self.text}"


class OutputChunker:
    def __init__(self, limit: int = DEFAULT_LIMIT, *, reserve_label: bool = True) -> None:
        if limit <= LABEL_RESERVE:
            raise ValueError(f"limit must exceed {LABEL_RESERVE} characters")
        self.limit = limit
        self.reserve_label = reserve_label

    @property
    def budget(self) -> int:
        """Characters available for chunk bodies."""

        return self.limit - LABEL_RESERVE if self.reserve_label else self.limit

    def format(self, text: str) -> str | list[str]:
        """Return ``text`` unchanged when it fits, else the labelled parts."""

        if len(text) <= self.limit:
            return text
        return self.smart_split(text)

    def smart_split(self, text: str) -> list[str]:
        parts = [chunk.render() for chunk in self.split(text)]
        logger.debug("Split %d characters into %d part(s)", len(text), len(parts))
        return parts

    def split(self, text: str) -> list[Chunk]:
        bodies = _Packer(self.budget).pack(text)
        total = len(bodies)
        return [Chunk(index=i, total=total, text=body) for i, body in enumerate(bodies, start=1)]


class _Packer:
    """Accumulates units into bodies no longer than ``budget``."""

    def __init__(self, budget: int) -> None:
        self.budget = budget
        self.bodies: list[str] = []
        self.current = ""

    def pack(self, text: str) -> list[str]:
        for block in _CODE_FENCE.split(text):
            if not block:
                continue
            if _CODE_FENCE.fullmatch(block):
                self._add_code(block)
            else:
                self._add_prose(block)
        self._flush()
        return self.bodies

    def _flush(self) -> None:
        body = self.current.strip()
        if body:
            self.bodies.append(body)
        self.current = ""

    def _add(self, piece: str, sep: str) -> None:
        if not self.current:
            self.current = piece
        elif len(self.current) + len(sep) + len(piece) <= self.budget:
            self.current += sep + piece
        else:
            self._flush()
            self.current = piece

    def _add_code(self, block: str) -> None:
        needed = len(block) + (len(self.current) + 1 if self.current else 0)
        if needed <= self.budget:
            self.current = f"{self.current}\n{block}" if self.current else block
            return
        # Whole block gets its own part, even past the budget.
        self._flush()
        self.bodies.append(block)

    def _add_prose(self, block: str) -> None:
        for paragraph in _PARAGRAPH_BREAK.split(block):
            paragraph = paragraph.strip()
            if not paragraph:
                continue
            if len(paragraph) <= self.budget:
                self._add(paragraph, "\n\n")
                continue

            first = True
            for sentence in self._sentences(paragraph):
                # First sentence of a paragraph keeps the paragraph break.
                self._add(sentence, "\n\n" if first else " ")
                first = False

    def _sentences(self, paragraph: str) -> list[str]:
        out: list[str] = []
        for sentence in _SENTENCE_END.split(paragraph):
            if not sentence:
                continue
            if len(sentence) <= self.budget:
                out.append(sentence)
            else:
                out.extend(textwrap.wrap(sentence, self.budget, break_on_hyphens=False))
        return out


__all__ = ["OutputChunker", "Chunk", "DEFAULT_LIMIT", "LABEL_RESERVE"]
