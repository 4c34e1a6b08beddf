"""
Response orchestration.

:class:`ResponseOrchestrator` is the single entry point for answering a
user. It decides, through the :class:`~echo_ai.memory.context.ContextGate`,
whether a clarifying question has to be asked first, and otherwise runs the
pipeline::

    ContextGatheringStep -> GenerationStep -> PersistenceStep -> FormattingStep

Requests from the same user are serialized by the gate's per-user lock.
Requests from different users run concurrently.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from echo_ai.errors import ContextError, classify, with_timeout
from echo_ai.formatter.chunker import OutputChunker
from echo_ai.interfaces import (
    DecodingParams,
    HistoryStore,
    KnowledgeStore,
    ModelProvider,
    WebSearchProvider,
)
from echo_ai.memory.cache import CacheRegistry
from echo_ai.memory.context import ContextGate

from .engine import PipelineContext, ResponsePipeline
from .prompt import PromptBuilder
from .sections import REFINEMENT_TEMPLATE
from .steps import ContextGatheringStep, FormattingStep, GenerationStep, PersistenceStep
from .tracker import RequestTracker

logger = logging.getLogger(__name__)

Reply = str | list[str]


class ResponseOrchestrator:
    def __init__(
        self,
        *,
        gate: ContextGate,
        history: HistoryStore,
        knowledge: KnowledgeStore,
        model: ModelProvider,
        params: DecodingParams,
        builder: PromptBuilder,
        chunker: OutputChunker,
        caches: CacheRegistry,
        settings: Any,
        web_search: WebSearchProvider | None = None,
        tracker: RequestTracker | None = None,
    ) -> None:
        self.gate = gate
        self.history = history
        self.knowledge = knowledge
        self.caches = caches
        self.settings = settings
        self.tracker = tracker or RequestTracker()
        self.pipeline = ResponsePipeline(
            [
                ContextGatheringStep(
                    history=history,
                    knowledge=knowledge,
                    caches=caches,
                    builder=builder,
                    settings=settings,
                    web_search=web_search,
                ),
                GenerationStep(model=model, params=params, settings=settings),
                PersistenceStep(history=history, settings=settings),
                FormattingStep(chunker),
            ]
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def generate_response(
        self,
        message: str,
        user_id: str | int,
        context_data: Mapping[str, str] | None = None,
    ) -> Reply:
        """
        Answer ``message`` for ``user_id``.

        Returns either a clarifying question, the reply text, or the reply
        split into labelled parts. Failures are counted by kind and re-raised.
        """
        return await self._serve(message, str(user_id), context_data)

    async def regenerate(
        self, user_id: str | int, context_data: Mapping[str, str] | None = None
    ) -> Reply:
        """Answer the user's most recent stored message again."""

        previous = await self._latest(str(user_id), "user")
        if previous is None:
            raise ContextError("There is no earlier question to regenerate.")
        return await self._serve(previous, str(user_id), context_data, replay=True)

    async def refine(
        self,
        user_id: str | int,
        feedback: str,
        context_data: Mapping[str, str] | None = None,
    ) -> Reply:
        """Rework the most recent answer according to ``feedback``."""

        previous = await self._latest(str(user_id), "assistant")
        if previous is None:
            raise ContextError("There is no earlier answer to refine.")
        prompt = REFINEMENT_TEMPLATE.format(previous=previous, feedback=feedback)
        # Explicit context skips the clarifying-question check.
        return await self._serve(prompt, str(user_id), dict(context_data or {}), replay=True)

    async def clear_history(self, user_id: str | int) -> None:
        """Forget stored context, any pending question and the conversation log."""

        user_id = str(user_id)
        async with self.gate.lock(user_id):
            await with_timeout(
                self.history.clear_history(user_id),
                self.settings.HISTORY_TIMEOUT,
                "history clear",
            )
            self.gate.clear_user(user_id)
        logger.info("Cleared history and context for user %s", user_id)

    def metrics(self) -> dict[str, Any]:
        return {"requests": self.tracker.stats(), "caches": self.caches.metrics()}

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _serve(
        self,
        message: str,
        user_id: str,
        context_data: Mapping[str, str] | None,
        *,
        replay: bool = False,
    ) -> Reply:
        async with self.gate.lock(user_id):
            with self.tracker.track() as request_id:
                try:
                    # Replayed text must never be taken as the answer to a pending question.
                    if replay and self.gate.pending(user_id) is not None:
                        raise ContextError(
                            "A clarifying question is still pending.",
                            suggested_action="Answer my earlier question first, then try again.",
                        )
                    return await self._respond(message, user_id, context_data)
                except Exception as exc:
                    kind = classify(exc)
                    self.tracker.record_error(kind)
                    logger.error(
                        "Request %s for user %s failed (%s): %s", request_id, user_id, kind.value, exc
                    )
                    raise

    async def _respond(
        self, message: str, user_id: str, context_data: Mapping[str, str] | None
    ) -> Reply:
        if not message or not message.strip():
            raise ContextError("Cannot answer an empty message.")

        pending = self.gate.resolve(user_id, message)
        if pending is not None:
            merged = {**self.gate.user_context(user_id), **(context_data or {})}
            return await self._generate_full(pending.original_question, user_id, merged)

        merged = {**self.gate.user_context(user_id), **(context_data or {})}
        if context_data is None:
            missing = self.gate.needs_additional_context(message, user_id, known=merged)
            if missing:
                return self.gate.ask(user_id, message, missing)

        return await self._generate_full(message, user_id, merged)

    async def _generate_full(self, message: str, user_id: str, merged: dict[str, str]) -> Reply:
        context = PipelineContext(user_id=user_id, message=message, context_data=merged)
        context = await self.pipeline.run(context)
        logger.info(
            "Answered user %s in %s part(s); step timings %s",
            user_id,
            context.step_metadata.get("parts"),
            context.step_metadata.get("timings_ms"),
        )
        return context.reply

    async def _latest(self, user_id: str, role: str) -> str | None:
        history = await with_timeout(
            self.history.get_recent_history(user_id, self.settings.HISTORY_WINDOW),
            self.settings.HISTORY_TIMEOUT,
            "history lookup",
        )
        for entry in reversed(history):
            if entry.get("role") == role:
                return entry.get("content")
        return None


__all__ = ["ResponseOrchestrator", "Reply"]
