"""Fixtures for node handler tests."""

import pytest

from contentflow.core.graph.executor import NodeExecutor
from contentflow.core.graph.state import ExecutionTrace
from contentflow.core.tools.base import Toolbox


@pytest.fixture
def trace() -> ExecutionTrace:
    return ExecutionTrace()


@pytest.fixture
def executor(trace: ExecutionTrace, toolbox: Toolbox) -> NodeExecutor:
    """Executor wired to the fake collaborators."""
    return NodeExecutor(trace, tools=toolbox)
