"""Error taxonomy for the workflow engine.

Node-level errors abort the branch they happen in and are recorded in the
execution trace. Graph validity errors are raised before a run starts.
"""

from typing import List, Optional, Sequence


class WorkflowError(Exception):
    """Base class for every engine error."""


class NodeConfigurationError(WorkflowError, ValueError):
    """A node is missing a required ``config`` field or has an invalid one."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class MissingInputError(WorkflowError, ValueError):
    """A node's required payload key was not produced upstream."""

    def __init__(self, message: str, checked: Sequence[str] = ()):
        if checked:
            message = f"{message} (checked: {', '.join(checked)})"
        super().__init__(message)
        self.checked = list(checked)


class CollaboratorError(WorkflowError, RuntimeError):
    """An external collaborator call failed or returned an unusable response."""


class GraphValidationError(WorkflowError, ValueError):
    """The graph cannot be run (empty, no trigger, rejected cycle)."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class WorkflowDocumentError(WorkflowError, ValueError):
    """A portable workflow document could not be imported."""


class RunStopped(WorkflowError):
    """Raised inside a run once ``stop()`` was requested; the result is discarded."""


class DepthLimitExceeded(WorkflowError, RuntimeError):
    """A branch grew past the configured ``max_depth``."""
