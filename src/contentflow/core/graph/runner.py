"""Workflow Runner

One ``WorkflowRunner`` is one run of a graph snapshot:

1. Validate the graph (nodes present, at least one trigger, cycles if rejected)
2. Execute each trigger in graph order with an empty payload
3. Walk each node's ``connected`` list in order, handing every child the
   parent's output; several children run concurrently on their own copies
4. Stop a path that re-enters a node already on it; fail one that grows
   past ``max_depth`` when a cap is configured
5. Collect the trace, terminal outputs and the first failure into a RunResult

A failing node aborts its own branch. Sibling branches finish, then the
failure propagates to the trigger and the run ends ``failed``. Other
triggers still run.

Example:
    ```python
    runner = WorkflowRunner.from_store(store, tools=Toolbox(scraper=my_scraper))
    result = await runner.run()
    print(result.status, result.summary)
    ```
"""

import asyncio
import copy
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union, TYPE_CHECKING

from contentflow.core.config import EngineConfig
from contentflow.core.errors import DepthLimitExceeded, GraphValidationError, RunStopped
from contentflow.core.graph.base import is_trigger, validate_nodes
from contentflow.core.graph.executor import NodeExecutor
from contentflow.core.graph.nodes import WorkflowNode
from contentflow.core.graph.nodes.payload import ITEM_LIST_KEYS, dedupe_references
from contentflow.core.graph.registry import NodeKind, resolve_kind
from contentflow.core.graph.state import CancellationToken, ExecutionTrace, NodeStatus, RunResult, RunStatus
from contentflow.core.logging import LogComponent, get_logger, log_verbose
from contentflow.core.tools.base import Toolbox

if TYPE_CHECKING:
    from contentflow.core.graph.base import GraphStore

Path = Tuple[str, ...]


class WorkflowRunner:
    """Executes a snapshot of a workflow graph once.

    Attributes:
        nodes: The snapshot being run, by id
        trace: Execution trace of this run
        status: Current run status
        config: Engine configuration
    """

    def __init__(
        self,
        nodes: Union[Mapping[str, WorkflowNode], Iterable[WorkflowNode]],
        tools: Optional[Toolbox] = None,
        config: Optional[EngineConfig] = None,
        trace: Optional[ExecutionTrace] = None,
    ):
        if isinstance(nodes, Mapping):
            nodes = nodes.values()
        self.nodes: Dict[str, WorkflowNode] = {node.id: node.model_copy(deep=True) for node in nodes}
        self.config = config or EngineConfig()
        self.trace = trace if trace is not None else ExecutionTrace(max_entries=self.config.max_trace_entries)
        self.executor = NodeExecutor(self.trace, tools=tools, config=self.config)
        self.status = RunStatus.IDLE
        self._token = CancellationToken()
        self._skipped: List[List[str]] = []
        self._outputs: List[Dict[str, Any]] = []
        self._logger = get_logger(LogComponent.RUNNER)

    @classmethod
    def from_store(
        cls,
        store: "GraphStore",
        tools: Optional[Toolbox] = None,
        config: Optional[EngineConfig] = None,
        trace: Optional[ExecutionTrace] = None,
    ) -> "WorkflowRunner":
        """Runner over a snapshot of ``store``; later edits to the store do not affect it."""
        return cls(store.snapshot(), tools=tools, config=config, trace=trace)

    def validate(self) -> List[str]:
        """Validate the snapshot.

        Returns:
            List of validation error messages (empty if valid)
        """
        return validate_nodes(self.nodes, self.config.cycle_policy)

    def triggers(self) -> List[WorkflowNode]:
        return [node for node in self.nodes.values() if is_trigger(node)]

    def stop(self) -> None:
        """Stop the run: no new node starts and in-flight results are discarded."""
        if self.status == RunStatus.RUNNING:
            self._logger.info("Stop requested")
            self.status = RunStatus.STOPPED
        self._token.cancel()

    @property
    def stopped(self) -> bool:
        return self._token.cancelled

    async def run(self) -> RunResult:
        """Execute the workflow.

        Returns:
            RunResult with the final status, trace entries and summary

        Raises:
            GraphValidationError: If the graph cannot be run; nothing is executed
            RuntimeError: If this runner was already used
        """
        errors = self.validate()
        if errors:
            self._logger.warning(f"Workflow validation failed: {'; '.join(errors)}")
            raise GraphValidationError(errors)
        if self.status != RunStatus.IDLE:
            raise RuntimeError("A WorkflowRunner runs once; create a new one for another run")

        self.trace.clear()
        self.status = RunStatus.RUNNING
        started_at = datetime.now()
        triggers = self.triggers()
        self._logger.info(f"Starting workflow run: {len(self.nodes)} nodes, {len(triggers)} triggers")

        first_error: Optional[BaseException] = None
        for trigger in triggers:
            if self._token.cancelled:
                break
            try:
                await self._visit(trigger, {}, ())
            except RunStopped:
                break
            except Exception as e:
                # Triggers are independent entry points; the next one still runs
                self._logger.error(f"Workflow branch from {trigger.label} ({trigger.id}) failed: {e}")
                if first_error is None:
                    first_error = e

        if self._token.cancelled:
            self.status = RunStatus.STOPPED
            summary = "Workflow execution stopped"
        elif first_error is not None:
            self.status = RunStatus.FAILED
            summary = f"Workflow execution failed: {first_error}"
        else:
            self.status = RunStatus.COMPLETED
            summary = "Workflow execution completed!"
        self._logger.info(summary)

        return RunResult(
            status=self.status,
            entries=self.trace.entries,
            summary=summary,
            error=str(first_error) if first_error is not None else None,
            skipped_cycles=list(self._skipped),
            outputs=list(self._outputs),
            started_at=started_at,
            finished_at=datetime.now(),
        )

    async def _visit(self, node: WorkflowNode, payload: Dict[str, Any], path: Path) -> None:
        """Execute ``node`` and everything reachable from it on this path."""
        if self._token.cancelled:
            raise RunStopped(f"Run stopped before {node.label}")
        if node.id in path:
            self._skip(path + (node.id,), f"Skipping {node.label} ({node.id}): already on this path")
            return
        max_depth = self.config.max_depth
        if max_depth is not None and len(path) >= max_depth:
            message = f"Path through {node.label} ({node.id}) is longer than max_depth={max_depth}"
            self.trace.add_log(node.id, node.label, NodeStatus.ERROR, f"Error: {message}")
            self._logger.error(message)
            raise DepthLimitExceeded(message)

        output = await self.executor.execute(node, payload, self._token)
        path = path + (node.id,)

        children = []
        for target in node.connected:
            child = self.nodes.get(target)
            if child is None:
                self._logger.warning(f"{node.label} ({node.id}) is connected to unknown node {target}")
                continue
            children.append(child)
        if not children:
            self._outputs.append(output)
            return

        branches = list(self._branches(node, output, children))
        if len(branches) == 1:
            child, data = branches[0]
            await self._visit(child, data, path)
            return

        log_verbose(self._logger, f"{node.label} fans out to {len(branches)} branches")
        results = await asyncio.gather(
            *(self._visit(child, data, path) for child, data in branches),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if not failures:
            return
        errors = [failure for failure in failures if not isinstance(failure, RunStopped)]
        raise errors[0] if errors else failures[0]

    def _branches(
        self, node: WorkflowNode, output: Dict[str, Any], children: List[WorkflowNode]
    ) -> Iterator[Tuple[WorkflowNode, Dict[str, Any]]]:
        """Pair each child with its own copy of the output.

        With ``fanOut`` set on the node, each item of its first non-empty item
        list gets a branch per child carrying just that item.
        """
        items = self._fan_out_items(node, output)
        if items is None:
            for child in children:
                yield child, copy.deepcopy(output)
            return
        for item in items:
            for child in children:
                yield child, self._item_payload(output, item)

    def _fan_out_items(self, node: WorkflowNode, output: Dict[str, Any]) -> Optional[List[Any]]:
        if not node.config.get("fanOut"):
            return None
        for key in ITEM_LIST_KEYS:
            items = output.get(key)
            if isinstance(items, list) and items:
                limit = self._fan_out_limit(node)
                selected = items[:limit] if limit else items
                if not self._token.cancelled:
                    self.trace.add_log(
                        node.id, node.label, NodeStatus.COMPLETED,
                        f"Fan-out: Found {len(items)} items in {key}. Processing {len(selected)} individually.",
                    )
                return [(key, item) for item in selected]
        return None

    @staticmethod
    def _fan_out_limit(node: WorkflowNode) -> Optional[int]:
        limit = node.config.get("fanOutLimit")
        if limit:
            return int(limit)
        kind = resolve_kind(node.kind)
        if kind == NodeKind.NEWS_DISCOVERY:
            return 2
        if kind == NodeKind.ACADEMIC_SEARCH:
            return int(node.config.get("maxPapers") or 5)
        return None

    @staticmethod
    def _item_payload(output: Dict[str, Any], keyed_item: Tuple[str, Any]) -> Dict[str, Any]:
        key, item = keyed_item
        data = copy.deepcopy(output)
        data.pop(key, None)
        item = copy.deepcopy(item)
        if isinstance(item, dict):
            if key == "scrapedContent":
                article = {"title": item.get("url") or "Scraped Content", "content": item.get("content"), "url": item.get("url")}
            elif key == "papers":
                article = {
                    "title": item.get("title"),
                    "content": item.get("abstract") or item.get("content"),
                    "url": item.get("url"),
                    "authors": item.get("authors"),
                    "year": item.get("year"),
                }
            else:
                article = item
            reference = item.get("source_reference")
        else:
            article, reference = item, None
        data["articles"] = [article]
        data["source_references"] = dedupe_references([reference] if reference else [])
        return data

    def _skip(self, path: Path, message: str) -> None:
        self._logger.warning(message)
        self._skipped.append(list(path))
