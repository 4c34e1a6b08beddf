"""
Pipeline step for gathering conversation context and building the model messages.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from echo_ai.errors import EchoError, with_timeout
from echo_ai.interfaces import (
    HistoryStore,
    KnowledgeEntry,
    KnowledgeStore,
    SearchResult,
    WebSearchProvider,
)
from echo_ai.memory.cache import MISS, CacheRegistry, generate_key
from echo_ai.response.engine import PipelineContext, PipelineStep
from echo_ai.response.prompt import PromptBuilder, optimize

logger = logging.getLogger(__name__)


class ContextGatheringStep(PipelineStep):
    """
    Fetches history, knowledge entries and web results, then builds the message list.

    History failures propagate. Knowledge and web failures are logged and
    treated as empty so the answer is generated from a plainer prompt.
    """

    def __init__(
        self,
        *,
        history: HistoryStore,
        knowledge: KnowledgeStore,
        caches: CacheRegistry,
        builder: PromptBuilder,
        settings: Any,
        web_search: WebSearchProvider | None = None,
    ) -> None:
        self.history = history
        self.knowledge = knowledge
        self.caches = caches
        self.builder = builder
        self.settings = settings
        self.web_search = web_search

    async def run(self, context: PipelineContext) -> PipelineContext:
        logger.debug("Gathering context for user %s", context.user_id)

        tasks = [
            asyncio.ensure_future(
                with_timeout(
                    self.history.get_recent_history(context.user_id, self.settings.HISTORY_WINDOW),
                    self.settings.HISTORY_TIMEOUT,
                    "history lookup",
                )
            ),
            asyncio.ensure_future(self._search_knowledge(context.message)),
            asyncio.ensure_future(self._search_web(context.message)),
        ]
        try:
            history, knowledge, web_results = await asyncio.gather(*tasks)
        except BaseException:
            # Lookups must not outlive the request (or the user's lock).
            for task in tasks:
                task.cancel()
            raise

        context.history = list(history)
        context.knowledge = knowledge
        context.web_results = web_results
        context.system_prompt = self.builder.build(
            context.message, context.context_data, knowledge, web_results
        )
        context.messages = [
            {"role": "system", "content": context.system_prompt},
            *context.history,
            {"role": "user", "content": optimize(context.message, self.settings.PROMPT_MAX_LENGTH)},
        ]
        context.step_metadata["knowledge_hits"] = len(knowledge)
        context.step_metadata["web_results"] = len(web_results)
        return context

    async def _search_knowledge(self, message: str) -> list[KnowledgeEntry]:
        key = generate_key("knowledge", message)
        cached = self.caches.knowledge.get(key)
        if cached is not MISS:
            return cached

        try:
            results = await with_timeout(
                self.knowledge.search_knowledge(message),
                self.settings.KNOWLEDGE_TIMEOUT,
                "knowledge search",
            )
        except EchoError as exc:
            logger.warning("Knowledge search failed (%s): %s", exc.kind.value, exc)
            return []

        results = list(results)
        if results:
            self.caches.knowledge.set(key, results)
        return results

    async def _search_web(self, message: str) -> list[SearchResult]:
        if self.web_search is None or not self.builder.wants_web_search(message):
            return []

        key = generate_key("research", message)
        cached = self.caches.research.get(key)
        if cached is not MISS:
            return cached

        try:
            results = await with_timeout(
                self.web_search.search(message),
                self.settings.SEARCH_TIMEOUT,
                "web search",
            )
        except EchoError as exc:
            logger.warning("Web search failed (%s): %s", exc.kind.value, exc)
            return []

        results = list(results)
        if results:
            self.caches.research.set(key, results)
        return results
