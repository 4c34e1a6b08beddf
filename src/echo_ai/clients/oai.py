"""Helpers for interacting with OpenAI API"""

from __future__ import annotations

import logging
import time

import openai
from openai import AsyncOpenAI

from echo_ai.errors import NetworkError, ParsingError, ProviderError, RateLimitError
from echo_ai.interfaces import DecodingParams

logger = logging.getLogger(__name__)


def _reset_at(exc: openai.APIStatusError) -> float | None:
    """Translate a ``retry-after`` header into a unix timestamp."""

    headers = getattr(getattr(exc, "response", None), "headers", None) or {}
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return time.time() + float(raw)
    except (TypeError, ValueError):
        return None


class OpenAIChatProvider:
    """Chat completion provider backed by ``AsyncOpenAI``."""

    def __init__(self, api_key: str | None = None, *, client: AsyncOpenAI | None = None) -> None:
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def complete(self, messages: list[dict], params: DecodingParams) -> str:
        """
        Send a chat completion request and return the response text.

        Example message format:
        .. code-block:: python
            [
                {
                    "role": "system",
                    "content": "You are a helpful assistant."
                },
                {
                    "role": "user",
                    "content": "Hello, how are you?"
                }
            ]
        """
        try:
            resp = await self.client.chat.completions.create(
                model=params.model,
                messages=messages,
                temperature=params.temperature,
                max_tokens=params.max_tokens,
                presence_penalty=params.presence_penalty,
                frequency_penalty=params.frequency_penalty,
            )
        except openai.RateLimitError as exc:
            raise RateLimitError(f"OpenAI rate limit exceeded: {exc}", reset_at=_reset_at(exc)) from exc
        except openai.APIConnectionError as exc:
            # Also covers APITimeoutError.
            raise NetworkError(f"Could not reach OpenAI: {exc}") from exc
        except openai.APIStatusError as exc:
            raise ProviderError(f"OpenAI returned HTTP {exc.status_code}: {exc}") from exc
        except openai.APIError as exc:
            raise ProviderError(f"OpenAI request failed: {exc}") from exc

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise ParsingError("OpenAI response had no choices") from exc
        return (content or "").strip()


__all__ = ["OpenAIChatProvider"]
