"""
Pipeline step that sizes the reply for the transport.
"""
from __future__ import annotations

from echo_ai.formatter.chunker import OutputChunker
from echo_ai.response.engine import PipelineContext, PipelineStep


class FormattingStep(PipelineStep):
    def __init__(self, chunker: OutputChunker) -> None:
        self.chunker = chunker

    async def run(self, context: PipelineContext) -> PipelineContext:
        context.reply = self.chunker.format(context.response_text)
        context.step_metadata["parts"] = 1 if isinstance(context.reply, str) else len(context.reply)
        return context
