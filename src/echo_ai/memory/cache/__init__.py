"""
In-process TTL cache package.

Modules
=======

``core``
    Defines :class:`~echo_ai.memory.cache.core.TTLCache`, a capacity-bounded
    store with lazy expiry, insertion-order eviction and hit/miss counters.
``keys``
    Provides :func:`~echo_ai.memory.cache.keys.generate_key`, which normalizes
    free text into stable cache keys.
``registry``
    Groups the named caches (knowledge and web research results) that the
    response pipeline consults, built from configuration by the host.

Cache state lives in process memory only; it is lost on restart and is not
shared between processes.
"""

from .core import MISS, CacheEntry, TTLCache
from .keys import generate_key
from .registry import CacheRegistry

__all__ = ["MISS", "CacheEntry", "TTLCache", "generate_key", "CacheRegistry"]
