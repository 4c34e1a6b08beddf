"""
Pipeline step that writes the exchange to the history store.
"""
from __future__ import annotations

from typing import Any

from echo_ai.errors import with_timeout
from echo_ai.interfaces import HistoryStore
from echo_ai.response.engine import PipelineContext, PipelineStep


class PersistenceStep(PipelineStep):
    def __init__(self, *, history: HistoryStore, settings: Any) -> None:
        self.history = history
        self.settings = settings

    async def run(self, context: PipelineContext) -> PipelineContext:
        # Sequential so the stored order is always question then answer.
        await with_timeout(
            self.history.save_message(context.user_id, context.message, False),
            self.settings.HISTORY_TIMEOUT,
            "history write",
        )
        await with_timeout(
            self.history.save_message(context.user_id, context.response_text, True),
            self.settings.HISTORY_TIMEOUT,
            "history write",
        )
        return context
