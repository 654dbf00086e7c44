"""Run state and the execution trace.

This module provides:
1. NodeStatus: status of one node invocation in the trace
2. RunStatus: lifecycle of a whole run
3. ExecutionLogEntry: one immutable trace record
4. ExecutionTrace: the ordered, append-only trace log of a run
5. CancellationToken: cooperative stop signal shared by a run
6. RunResult: what a finished run hands back to the caller
"""

from collections import deque
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional
from uuid import uuid4
from pydantic import BaseModel, ConfigDict, Field


class NodeStatus(str, Enum):
    """Node execution status as recorded in the trace."""
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class RunStatus(str, Enum):
    """Run lifecycle: idle -> running -> completed | failed | stopped."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"


class ExecutionLogEntry(BaseModel):
    """One trace record. Immutable once written."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    node_id: str
    node_label: str
    status: NodeStatus
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    data: Optional[Any] = None


TraceListener = Callable[[ExecutionLogEntry], None]


class ExecutionTrace:
    """Ordered, append-only record of per-node events for one run.

    Entries are never deduplicated. When ``max_entries`` is reached the oldest
    entry is dropped and ``dropped`` is incremented.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self.dropped = 0
        self._entries: Deque[ExecutionLogEntry] = deque()
        self._listeners: List[TraceListener] = []

    def add_log(
        self,
        node_id: str,
        label: str,
        status: NodeStatus,
        message: str,
        data: Optional[Any] = None,
    ) -> ExecutionLogEntry:
        """Append an entry and notify listeners."""
        entry = ExecutionLogEntry(
            node_id=node_id,
            node_label=label,
            status=NodeStatus(status),
            message=message,
            data=data,
        )
        if self.max_entries is not None and len(self._entries) >= self.max_entries:
            self._entries.popleft()
            self.dropped += 1
        self._entries.append(entry)
        for listener in list(self._listeners):
            listener(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self.dropped = 0

    def subscribe(self, listener: TraceListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def entries(self) -> List[ExecutionLogEntry]:
        return list(self._entries)

    def for_node(self, node_id: str) -> List[ExecutionLogEntry]:
        return [entry for entry in self._entries if entry.node_id == node_id]

    def errors(self) -> List[ExecutionLogEntry]:
        return [entry for entry in self._entries if entry.status == NodeStatus.ERROR]

    def __iter__(self) -> Iterator[ExecutionLogEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class CancellationToken:
    """Cooperative stop flag for one run."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class RunResult(BaseModel):
    """Outcome of a workflow run.

    Attributes:
        status: Final run status
        entries: Snapshot of the trace
        summary: Single user-facing notification for the run
        error: Message of the first failure, if any
        skipped_cycles: Paths that re-entered a node and were cut
        outputs: Payload produced by each terminal node visit, in completion order
    """
    status: RunStatus
    entries: List[ExecutionLogEntry] = Field(default_factory=list)
    summary: str = ""
    error: Optional[str] = None
    skipped_cycles: List[List[str]] = Field(default_factory=list)
    outputs: List[Dict[str, Any]] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED
