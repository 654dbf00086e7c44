"""Tests for run state.

This module tests:
- ExecutionTrace ordering, capacity and listeners
- ExecutionLogEntry immutability
- CancellationToken
- RunResult helpers
"""

import pytest
from pydantic import ValidationError

from contentflow.core.graph.state import (
    CancellationToken,
    ExecutionTrace,
    NodeStatus,
    RunResult,
    RunStatus,
)


@pytest.fixture
def trace() -> ExecutionTrace:
    """Fixture providing an unbounded trace."""
    return ExecutionTrace()


class TestExecutionTrace:
    """Test suite for the execution trace."""

    def test_entries_in_append_order(self, trace: ExecutionTrace):
        """Entries come back in the order they were written."""
        trace.add_log("a", "A", NodeStatus.RUNNING, "start")
        trace.add_log("a", "A", NodeStatus.COMPLETED, "done")
        trace.add_log("b", "B", NodeStatus.RUNNING, "start")

        assert [(e.node_id, e.status) for e in trace.entries] == [
            ("a", NodeStatus.RUNNING),
            ("a", NodeStatus.COMPLETED),
            ("b", NodeStatus.RUNNING),
        ]

    def test_entries_are_not_deduplicated(self, trace: ExecutionTrace):
        """Identical writes produce distinct entries."""
        first = trace.add_log("a", "A", NodeStatus.RUNNING, "same")
        second = trace.add_log("a", "A", NodeStatus.RUNNING, "same")

        assert len(trace) == 2
        assert first.id != second.id

    def test_status_accepts_strings(self, trace: ExecutionTrace):
        """Plain status strings are coerced to NodeStatus."""
        entry = trace.add_log("a", "A", "error", "boom")
        assert entry.status is NodeStatus.ERROR

    def test_entry_is_immutable(self, trace: ExecutionTrace):
        """Entries cannot be changed after they are written."""
        entry = trace.add_log("a", "A", NodeStatus.RUNNING, "start")
        with pytest.raises(ValidationError):
            entry.message = "changed"

    def test_capacity_drops_oldest(self):
        """Beyond max_entries the oldest entries are dropped and counted."""
        trace = ExecutionTrace(max_entries=3)
        for index in range(5):
            trace.add_log("a", "A", NodeStatus.RUNNING, f"entry {index}")

        assert [e.message for e in trace.entries] == ["entry 2", "entry 3", "entry 4"]
        assert trace.dropped == 2

    def test_clear(self, trace: ExecutionTrace):
        """clear() empties the trace and resets the drop counter."""
        trace.add_log("a", "A", NodeStatus.RUNNING, "start")
        trace.clear()
        assert len(trace) == 0
        assert trace.dropped == 0

    def test_filters(self, trace: ExecutionTrace):
        """for_node() and errors() filter the entries."""
        trace.add_log("a", "A", NodeStatus.RUNNING, "start")
        trace.add_log("b", "B", NodeStatus.ERROR, "boom")
        trace.add_log("a", "A", NodeStatus.COMPLETED, "done")

        assert [e.message for e in trace.for_node("a")] == ["start", "done"]
        assert [e.node_id for e in trace.errors()] == ["b"]

    def test_entries_is_a_snapshot(self, trace: ExecutionTrace):
        """Mutating the returned list does not touch the trace."""
        trace.add_log("a", "A", NodeStatus.RUNNING, "start")
        entries = trace.entries
        entries.clear()
        assert len(trace) == 1


class TestTraceListeners:
    """Test suite for trace subscriptions."""

    def test_listener_receives_entries(self, trace: ExecutionTrace):
        """Listeners see each entry as it is appended."""
        seen = []
        trace.subscribe(seen.append)
        entry = trace.add_log("a", "A", NodeStatus.RUNNING, "start")
        assert seen == [entry]

    def test_unsubscribe(self, trace: ExecutionTrace):
        """An unsubscribed listener stops receiving entries."""
        seen = []
        unsubscribe = trace.subscribe(seen.append)
        trace.add_log("a", "A", NodeStatus.RUNNING, "one")
        unsubscribe()
        trace.add_log("a", "A", NodeStatus.RUNNING, "two")
        unsubscribe()

        assert [e.message for e in seen] == ["one"]


class TestCancellationToken:
    """Test suite for the stop signal."""

    def test_cancel(self):
        """A token starts live and stays cancelled once cancelled."""
        token = CancellationToken()
        assert not token.cancelled
        token.cancel()
        token.cancel()
        assert token.cancelled


class TestRunResult:
    """Test suite for run results."""

    def test_succeeded(self):
        """Only a completed run counts as succeeded."""
        assert RunResult(status=RunStatus.COMPLETED).succeeded
        assert not RunResult(status=RunStatus.FAILED, error="boom").succeeded
        assert not RunResult(status=RunStatus.STOPPED).succeeded

    def test_defaults(self):
        """Collections default to empty."""
        result = RunResult(status=RunStatus.COMPLETED)
        assert result.entries == []
        assert result.skipped_cycles == []
        assert result.outputs == []
        assert result.error is None
