"""Node package initialization.

Importing this package registers one handler per node kind.
"""

from contentflow.core.graph.nodes.base.node import (
    NodeConfig,
    NodeContext,
    NodeHandler,
    NodeOutput,
    Position,
    WorkflowNode,
)
from contentflow.core.graph.nodes import analysis, output, processing, sources  # noqa: F401  (registration)

__all__ = [
    # Graph data
    "WorkflowNode",
    "Position",

    # Handler API
    "NodeHandler",
    "NodeConfig",
    "NodeContext",
    "NodeOutput",
]
