from .context import ContextGatheringStep
from .formatting import FormattingStep
from .generation import GenerationStep
from .persistence import PersistenceStep

__all__ = ["ContextGatheringStep", "GenerationStep", "PersistenceStep", "FormattingStep"]
