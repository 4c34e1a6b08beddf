"""Entry-point helpers for generating replies."""

from __future__ import annotations

import asyncio
import logging
import sqlite3

from echo_ai.formatter.chunker import OutputChunker
from echo_ai.interfaces import DecodingParams, ModelProvider
from echo_ai.memory.cache import CacheRegistry
from echo_ai.memory.context import ContextGate
from echo_ai.memory.sql import HistoryRepo, KnowledgeRepo, connect, migrate

from . import sections
from .orchestrator import Reply, ResponseOrchestrator
from .prompt import PromptBuilder

logger = logging.getLogger(__name__)


def model_provider() -> tuple[ModelProvider, str]:
    """Return the configured chat provider and the model id to request."""

    from echo_ai.config import core, local_llm

    if local_llm.USE_LOCAL:
        from echo_ai.clients.ollama import OllamaChatProvider

        return OllamaChatProvider(local_llm.LOCAL_SERVER_URL), local_llm.LOCAL_MODEL_ID

    from echo_ai.clients.oai import OpenAIChatProvider

    return OpenAIChatProvider(core.OPENAI_API_KEY), core.MSG_MODEL_ID


def web_search_provider():
    """Return a web search client, or ``None`` when search is off or has no key."""

    from echo_ai.clients.search import TavilySearch
    from echo_ai.config import core, generation, search

    if not search.ENABLED:
        logger.info("Web search disabled by configuration")
        return None
    if not core.TAVILY_API_KEY:
        logger.info("No web search API key configured; answers will not use web results")
        return None
    return TavilySearch(
        core.TAVILY_API_KEY,
        endpoint=search.ENDPOINT,
        max_results=search.MAX_RESULTS,
        search_depth=search.SEARCH_DEPTH,
        timeout=generation.SEARCH_TIMEOUT,
    )


async def build_orchestrator(conn: sqlite3.Connection | None = None) -> ResponseOrchestrator:
    """Wire the orchestrator from configuration, migrating the database first."""

    from echo_ai.config import cache, core, generation

    conn = conn or connect()
    await asyncio.to_thread(migrate, conn)
    db_lock = asyncio.Lock()

    model, model_id = model_provider()
    web_search = web_search_provider()
    base_prompt = core.BASE_PROMPT if core.BASE_PROMPT is not None else sections.BASE_PROMPT

    orchestrator = ResponseOrchestrator(
        gate=ContextGate(),
        history=HistoryRepo(conn, db_lock),
        knowledge=KnowledgeRepo(conn, db_lock),
        model=model,
        params=DecodingParams(
            model=model_id,
            temperature=generation.TEMPERATURE,
            max_tokens=generation.MAX_TOKENS,
            presence_penalty=generation.PRESENCE_PENALTY,
            frequency_penalty=generation.FREQUENCY_PENALTY,
        ),
        builder=PromptBuilder(
            base_prompt,
            web_formatter=web_search.format_results if web_search else None,
        ),
        chunker=OutputChunker(generation.CHUNK_LIMIT, reserve_label=generation.RESERVE_LABEL),
        caches=CacheRegistry.from_config(cache),
        settings=generation,
        web_search=web_search,
    )
    logger.info("Response orchestrator ready (model=%s, web search=%s)", model_id, bool(web_search))
    return orchestrator


__all__ = [
    "Reply",
    "ResponseOrchestrator",
    "build_orchestrator",
    "model_provider",
    "web_search_provider",
]
