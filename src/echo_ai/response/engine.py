"""
Core engine for the response pipeline.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from echo_ai.interfaces import KnowledgeEntry, SearchResult

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """
    Holds the state of one response generation.
    """
    user_id: str

    # The question being answered. For a resolved clarification this is the
    # original question, not the user's latest message.
    message: str

    # Stored user context merged with any explicit context for this call.
    context_data: dict[str, str] = field(default_factory=dict)

    # Populated by ContextGatheringStep.
    history: list[dict[str, str]] = field(default_factory=list)
    knowledge: list[KnowledgeEntry] = field(default_factory=list)
    web_results: list[SearchResult] = field(default_factory=list)
    system_prompt: str = ""

    # Messages sent to the model: [system, *history, user].
    messages: list[dict[str, Any]] = field(default_factory=list)

    # Raw model output.
    response_text: str = ""

    # What the caller receives after chunking.
    reply: str | list[str] = ""

    # Per-step timings and flags, for logs and tests.
    step_metadata: dict[str, Any] = field(default_factory=dict)


class PipelineStep(ABC):
    """
    Abstract base class for a single step in the pipeline.
    """

    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        """
        Execute the step logic.

        Args:
            context: The current pipeline context.

        Returns:
            The updated pipeline context.
        """
        pass


class ResponsePipeline:
    """
    Orchestrates the execution of pipeline steps.
    """

    def __init__(self, steps: list[PipelineStep]):
        self.steps = steps

    async def run(self, context: PipelineContext) -> PipelineContext:
        """
        Run all steps in order and return the final context.
        """
        current_context = context
        timings = current_context.step_metadata.setdefault("timings_ms", {})

        for i, step in enumerate(self.steps):
            step_name = step.__class__.__name__
            logger.debug("Running pipeline step %d: %s", i + 1, step_name)

            started = time.perf_counter()
            try:
                current_context = await step.run(current_context)
            except Exception as e:
                logger.error("Pipeline step %s failed: %s", step_name, e)
                raise
            finally:
                timings[step_name] = round((time.perf_counter() - started) * 1000, 2)

        return current_context


__all__ = ["PipelineContext", "PipelineStep", "ResponsePipeline"]
