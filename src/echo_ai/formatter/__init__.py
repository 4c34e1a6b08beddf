from __future__ import annotations

from .chunker import Chunk, OutputChunker
from .delivery import deliver

__all__ = ["Chunk", "OutputChunker", "deliver"]
