"""
Latency and error tracking for response requests.
Every started request is ended exactly once, whether it succeeds or fails.
"""
from __future__ import annotations

import logging
import time
import uuid
from collections import Counter
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from echo_ai.errors import ErrorKind

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestTracker:
    """
    Records per-request latency and error counts by :class:`ErrorKind`.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._started_at = clock()
        self._in_flight: dict[str, float] = {}
        self._errors: Counter[ErrorKind] = Counter()
        self.total_requests = 0
        self.completed = 0
        self.total_latency_ms = 0.0

    def start(self, request_id: str) -> None:
        self.total_requests += 1
        self._in_flight[request_id] = self._clock()

    def end(self, request_id: str) -> float | None:
        """
        Stop tracking ``request_id`` and return its latency in milliseconds.

        Returns ``None`` for unknown or already-ended ids.
        """
        started = self._in_flight.pop(request_id, None)
        if started is None:
            return None
        latency_ms = (self._clock() - started) * 1000
        self.completed += 1
        self.total_latency_ms += latency_ms
        logger.debug("Request %s finished in %.2fms", request_id, latency_ms)
        return latency_ms

    @contextmanager
    def track(self, request_id: str | None = None) -> Iterator[str]:
        request_id = request_id or new_request_id()
        self.start(request_id)
        try:
            yield request_id
        finally:
            self.end(request_id)

    def record_error(self, kind: ErrorKind) -> None:
        self._errors[kind] += 1

    def in_flight(self) -> int:
        return len(self._in_flight)

    def stats(self) -> dict[str, Any]:
        total_errors = sum(self._errors.values())
        return {
            "total_requests": self.total_requests,
            "completed": self.completed,
            "in_flight": self.in_flight(),
            "avg_latency_ms": round(self.total_latency_ms / self.completed, 2) if self.completed else 0.0,
            "error_rate": total_errors / self.total_requests if self.total_requests else 0.0,
            "errors_by_kind": {kind.value: count for kind, count in self._errors.items()},
            "uptime_s": round(self._clock() - self._started_at, 2),
        }


__all__ = ["RequestTracker", "new_request_id"]
