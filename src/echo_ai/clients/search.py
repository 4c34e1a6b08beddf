"""
Web search via the Tavily REST API.

:class:`TavilySearch` posts a query and returns :class:`SearchResult` rows;
:func:`format_results` renders them as a numbered Markdown list for the
system prompt. HTTP and payload failures are raised as typed
:mod:`echo_ai.errors` so the pipeline can degrade to an un-augmented prompt.
"""

from __future__ import annotations

import json
import logging
import textwrap
import time
from typing import Any, Sequence

import aiohttp

from echo_ai.errors import NetworkError, ParsingError, ProviderError, RateLimitError
from echo_ai.interfaces import SearchResult

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.tavily.com/search"


def parse_results(data: Any) -> list[SearchResult]:
    """Convert a Tavily JSON payload into :class:`SearchResult` rows."""

    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise ParsingError("Search response did not contain a results list")

    results: list[SearchResult] = []
    for item in data["results"]:
        if not isinstance(item, dict):
            continue
        url = item.get("url") or ""
        snippet = (item.get("content") or item.get("snippet") or "").strip()
        if not url and not snippet:
            continue
        results.append(
            SearchResult(
                title=(item.get("title") or url or "Untitled").strip(),
                url=url,
                snippet=snippet,
                score=item.get("score"),
            )
        )
    return results


def format_results(results: Sequence[SearchResult], *, limit: int = 5, width: int = 300) -> str:
    """Render results as a numbered list of ``title (url)`` with a shortened snippet."""

    lines: list[str] = []
    for idx, result in enumerate(results[:limit], start=1):
        header = f"{idx}. **{result.title}**"
        if result.url:
            header += f" ({result.url})"
        lines.append(header)
        if result.snippet:
            lines.append("   " + textwrap.shorten(result.snippet, width=width, placeholder="…"))
    return "\n".join(lines)


class TavilySearch:
    def __init__(
        self,
        api_key: str,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        max_results: int = 5,
        search_depth: str = "basic",
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.max_results = max_results
        self.search_depth = search_depth
        self.timeout = timeout

    async def search(self, query: str) -> list[SearchResult]:
        payload = {
            "query": query,
            "max_results": self.max_results,
            "search_depth": self.search_depth,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        client_timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session, session.post(
                self.endpoint, json=payload, headers=headers
            ) as resp:
                if resp.status == 429:
                    retry_after = resp.headers.get("Retry-After")
                    reset_at = time.time() + float(retry_after) if retry_after and retry_after.isdigit() else None
                    raise RateLimitError("Web search rate limit exceeded", reset_at=reset_at)
                if resp.status >= 400:
                    body = await resp.text()
                    raise ProviderError(f"Web search returned HTTP {resp.status}: {body[:200]}")
                try:
                    data = await resp.json()
                except (aiohttp.ContentTypeError, json.JSONDecodeError) as exc:
                    raise ParsingError("Web search returned a non-JSON body") from exc
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Web search request failed: {exc}") from exc

        results = parse_results(data)
        logger.info("Web search for %r returned %d result(s)", query[:80], len(results))
        return results

    def format_results(self, results: Sequence[SearchResult]) -> str:
        return format_results(results, limit=self.max_results)


__all__ = ["TavilySearch", "parse_results", "format_results", "DEFAULT_ENDPOINT"]
