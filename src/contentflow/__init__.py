"""Contentflow - content workflow execution engine."""

from contentflow.core import EngineConfig, configure_logging, LogLevel, LogComponent
from contentflow.core.graph import GraphStore, NodeKind, RunResult, RunStatus, WorkflowRunner
from contentflow.core.tools import Toolbox

__all__ = [
    'GraphStore',
    'WorkflowRunner',
    'NodeKind',
    'RunResult',
    'RunStatus',
    'Toolbox',
    'EngineConfig',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
