"""Helpers for interacting with a local LLaMA-based server"""

from __future__ import annotations

import httpx
from ollama import AsyncClient, ResponseError

from echo_ai.errors import NetworkError, ProviderError, RateLimitError
from echo_ai.interfaces import DecodingParams


class OllamaChatProvider:
    """Chat completion provider backed by a local Ollama server."""

    def __init__(self, host: str, *, client: AsyncClient | None = None) -> None:
        self.client = client or AsyncClient(host=host)

    async def complete(self, messages: list[dict], params: DecodingParams) -> str:
        """
        Send a prompt to the local Ollama server and return its reply.

        Example input messages list[dict]:

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
            resp = await self.client.chat(
                model=params.model,
                messages=messages,
                options={
                    "temperature": params.temperature,
                    "num_predict": params.max_tokens,
                    "presence_penalty": params.presence_penalty,
                    "frequency_penalty": params.frequency_penalty,
                },
            )
        except ResponseError as exc:
            if exc.status_code == 429:
                raise RateLimitError(f"Ollama rate limit: {exc.error}") from exc
            raise ProviderError(f"Ollama returned HTTP {exc.status_code}: {exc.error}") from exc
        except (ConnectionError, httpx.TransportError) as exc:
            raise NetworkError(f"Could not reach Ollama: {exc}") from exc

        return (resp.message.content or "").strip()


__all__ = ["OllamaChatProvider"]
