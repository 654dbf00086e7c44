"""Engine configuration."""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from contentflow.core.logging import ContentflowLoggingConfig

DEFAULT_AI_MODEL = "gpt-4o-mini"


class EngineConfig(BaseModel):
    """Configuration shared by the runner and the node executor.

    Attributes:
        default_ai_model: Model used by AI nodes that do not set ``aiModel``
        max_trace_entries: Trace capacity; oldest entries are dropped beyond it
        max_depth: Longest path (in nodes) a branch may walk before the run fails; unbounded by default
        cycle_policy: ``skip`` re-entry on a path, or ``reject`` cyclic graphs up front
        logging: Logging toggles
    """
    default_ai_model: str = DEFAULT_AI_MODEL
    max_trace_entries: int = Field(default=10_000, gt=0)
    max_depth: Optional[int] = Field(default=None, gt=0)
    cycle_policy: Literal["skip", "reject"] = "skip"
    logging: ContentflowLoggingConfig = Field(default_factory=ContentflowLoggingConfig)
