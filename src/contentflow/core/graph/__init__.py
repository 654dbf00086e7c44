"""Graph package initialization.

Exposes the graph store, the runner and the pieces needed to build and run
workflows.
"""

from contentflow.core.graph.base import ConnectResult, GraphStore
from contentflow.core.graph.document import WorkflowDocument
from contentflow.core.graph.executor import NodeExecutor
from contentflow.core.graph.nodes import NodeHandler, NodeOutput, Position, WorkflowNode
from contentflow.core.graph.registry import NodeCategory, NodeKind, get_kind_spec, register_handler
from contentflow.core.graph.runner import WorkflowRunner
from contentflow.core.graph.state import (
    CancellationToken,
    ExecutionLogEntry,
    ExecutionTrace,
    NodeStatus,
    RunResult,
    RunStatus,
)

__all__ = [
    # Core classes
    "GraphStore",
    "WorkflowRunner",
    "NodeExecutor",
    "WorkflowNode",
    "WorkflowDocument",
    "Position",
    "ConnectResult",

    # Registry
    "NodeKind",
    "NodeCategory",
    "get_kind_spec",
    "register_handler",
    "NodeHandler",
    "NodeOutput",

    # Run state
    "ExecutionTrace",
    "ExecutionLogEntry",
    "NodeStatus",
    "RunStatus",
    "RunResult",
    "CancellationToken",
]
