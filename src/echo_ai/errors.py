"""
Structured error types shared across the response pipeline.

Every failure that crosses a component boundary is an :class:`EchoError`
whose :class:`ErrorKind` is chosen where the failure happens (the client or
repository that caught the library exception). Downstream code reads
``exc.kind`` through :func:`classify`; it never inspects message text.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration_error"
    NETWORK = "network_error"
    RATE_LIMIT = "rate_limit_error"
    API = "api_error"
    CONTEXT = "context_error"
    PARSING = "parsing_error"
    DATABASE = "database_error"
    UNKNOWN = "unknown_error"


_SUGGESTIONS: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Check your internet connection and try again.",
    ErrorKind.RATE_LIMIT: "Please wait a moment before trying again.",
    ErrorKind.PARSING: "Try rephrasing your request or providing clearer information.",
    ErrorKind.CONTEXT: "Please provide more details or context to help me understand.",
    ErrorKind.API: "There's an issue with an external service. Please try again later.",
    ErrorKind.DATABASE: "There's a database issue. Please try again later.",
    ErrorKind.CONFIGURATION: "The assistant is misconfigured. Contact an administrator.",
}


class EchoError(RuntimeError):
    """Base error carrying an explicit kind and a recoverability flag."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        recoverable: bool | None = None,
        suggested_action: str | None = None,
    ) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        if recoverable is not None:
            self.recoverable = recoverable
        self.suggested_action = suggested_action or _SUGGESTIONS.get(
            self.kind, "Please try again or rephrase your request."
        )

    def user_message(self) -> str:
        """Short text suitable for sending back to the person who asked."""

        return f"Something went wrong ({self.kind.value}). {self.suggested_action}"


class ConfigurationError(EchoError):
    kind = ErrorKind.CONFIGURATION
    recoverable = False


class NetworkError(EchoError):
    kind = ErrorKind.NETWORK


class StepTimeoutError(NetworkError):
    """Raised by :func:`with_timeout` when a suspension point overruns."""

    def __init__(self, operation: str, timeout: float) -> None:
        super().__init__(f"{operation} timed out after {timeout:g}s")
        self.operation = operation
        self.timeout = timeout


class RateLimitError(EchoError):
    """Not retried automatically; ``reset_at`` is a unix timestamp when known."""

    kind = ErrorKind.RATE_LIMIT
    recoverable = False

    def __init__(self, message: str, *, reset_at: float | None = None) -> None:
        super().__init__(message)
        self.reset_at = reset_at


class ProviderError(EchoError):
    kind = ErrorKind.API


class ContextError(EchoError):
    kind = ErrorKind.CONTEXT


class ParsingError(EchoError):
    kind = ErrorKind.PARSING


class DatabaseError(EchoError):
    kind = ErrorKind.DATABASE


def classify(exc: BaseException) -> ErrorKind:
    """Return the kind attached to ``exc`` at its throw site."""

    if isinstance(exc, EchoError):
        return exc.kind
    return ErrorKind.UNKNOWN


async def with_timeout(awaitable: Awaitable[T], timeout: float | None, operation: str) -> T:
    """
    Await ``awaitable`` for at most ``timeout`` seconds.

    The pending task is cancelled on expiry and :class:`StepTimeoutError` is
    raised in place of :class:`asyncio.TimeoutError`. ``None`` disables the
    bound.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("%s timed out after %ss", operation, timeout)
        raise StepTimeoutError(operation, timeout) from exc


__all__ = [
    "ErrorKind",
    "EchoError",
    "ConfigurationError",
    "NetworkError",
    "StepTimeoutError",
    "RateLimitError",
    "ProviderError",
    "ContextError",
    "ParsingError",
    "DatabaseError",
    "classify",
    "with_timeout",
]
