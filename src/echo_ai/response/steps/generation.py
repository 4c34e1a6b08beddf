"""
Pipeline step for response generation.
"""
from __future__ import annotations

import logging
from typing import Any

from echo_ai.errors import ParsingError, with_timeout
from echo_ai.interfaces import DecodingParams, ModelProvider
from echo_ai.response.engine import PipelineContext, PipelineStep

logger = logging.getLogger(__name__)


class GenerationStep(PipelineStep):
    """
    Sends the assembled messages to the model provider.
    """

    def __init__(self, *, model: ModelProvider, params: DecodingParams, settings: Any) -> None:
        self.model = model
        self.params = params
        self.settings = settings

    async def run(self, context: PipelineContext) -> PipelineContext:
        result_text = await with_timeout(
            self.model.complete(context.messages, self.params),
            self.settings.MODEL_TIMEOUT,
            "model completion",
        )
        if not result_text or not result_text.strip():
            raise ParsingError("Model returned an empty response")

        context.response_text = result_text.strip()
        context.messages.append({"role": "assistant", "content": context.response_text})
        logger.debug(
            "Model %s produced %d characters", self.params.model, len(context.response_text)
        )
        return context
