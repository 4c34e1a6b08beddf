"""
Bounded key/value cache with per-entry time-to-live.

Entries expire lazily: staleness is only checked when a key is read through
:meth:`TTLCache.get` or :meth:`TTLCache.has`, and a stale entry is deleted at
that moment. When the cache is full, inserting a new key evicts the entry
with the oldest ``created_at``. Reads do not refresh an entry's position, so
eviction follows insertion order rather than recency of use.

No method raises for a missing or stale key. :meth:`get` returns the
:data:`MISS` sentinel (or a caller supplied default) instead.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable

logger = logging.getLogger(__name__)


class _Miss:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


@dataclass(slots=True)
class CacheEntry:
    value: Any
    created_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class TTLCache:
    """Capacity-bounded TTL cache with hit/miss/eviction counters."""

    def __init__(
        self,
        max_size: int = 500,
        default_ttl: float = 3600.0,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.name = name
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        # dict preserves insertion order, which is also created_at order.
        self._store: Dict[Hashable, CacheEntry] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: Hashable, default: Any = MISS) -> Any:
        """Return the cached value, or ``default`` when absent or stale."""

        entry = self._store.get(key)
        if entry is None:
            self.misses += 1
            return default

        if entry.expired(self._clock()):
            del self._store[key]
            self.misses += 1
            return default

        self.hits += 1
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``, evicting the oldest entry when full."""

        if key in self._store:
            # Overwrites restart the entry's lifetime and move it to the newest slot.
            del self._store[key]
        elif len(self._store) >= self.max_size:
            self._evict_oldest()

        self._store[key] = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )

    def has(self, key: Hashable) -> bool:
        """Return ``True`` for a live entry; metrics are left untouched."""

        entry = self._store.get(key)
        if entry is None:
            return False
        if entry.expired(self._clock()):
            del self._store[key]
            return False
        return True

    def delete(self, key: Hashable) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def reset_metrics(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def metrics(self) -> dict[str, Any]:
        total = self.hits + self.misses
        return {
            "size": len(self._store),
            "max_size": self.max_size,
            "hit_rate": 0 if total == 0 else self.hits / total,
            "eviction_rate": 0 if total == 0 else self.evictions / total,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }

    def _evict_oldest(self) -> None:
        oldest_key = min(self._store, key=lambda k: self._store[k].created_at)
        del self._store[oldest_key]
        self.evictions += 1
        logger.debug("Evicted %r from %s cache", oldest_key, self.name)


__all__ = ["CacheEntry", "MISS", "TTLCache"]
