"""Node Executor

Runs a single node against an input payload:

1. Write a ``running`` entry to the trace
2. Resolve the handler for the node's kind (kinds without one pass their input through)
3. Validate the node's config against the handler's config model
4. Run the handler on a private copy of the payload
5. Write a ``completed`` entry with the handler's summary, or an ``error``
   entry, and return the output

The executor never touches the graph; edges are the runner's business.
"""

import copy
from typing import Any, Dict, Optional

from contentflow.core.config import EngineConfig
from contentflow.core.errors import RunStopped
from contentflow.core.graph.nodes import NodeContext, WorkflowNode
from contentflow.core.graph.registry import get_handler
from contentflow.core.graph.state import CancellationToken, ExecutionTrace, NodeStatus
from contentflow.core.logging import LogComponent, get_logger, log_payload
from contentflow.core.tools.base import Toolbox


class NodeExecutor:
    """Execute nodes through their registered handlers.

    Attributes:
        trace: Trace every invocation writes to
        tools: Collaborators handed to the handlers
        config: Engine configuration
    """

    def __init__(
        self,
        trace: ExecutionTrace,
        tools: Optional[Toolbox] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.trace = trace
        self.tools = tools or Toolbox()
        self.config = config or EngineConfig()
        self._logger = get_logger(LogComponent.EXECUTOR)

    async def execute(
        self,
        node: WorkflowNode,
        payload: Optional[Dict[str, Any]] = None,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """Execute one node.

        Args:
            node: The node to run
            payload: Output of the upstream node (empty for triggers)
            token: Stop signal of the current run

        Returns:
            The node's output payload

        Raises:
            NodeConfigurationError: If the node's config fails validation
            MissingInputError: If the payload lacks what the node needs
            CollaboratorError: If the node's collaborator call failed
            RunStopped: If the run was stopped before the node finished
        """
        token = token or CancellationToken()
        context = NodeContext(node=node, trace=self.trace, tools=self.tools, config=self.config, token=token)
        data = copy.deepcopy(payload) if payload else {}

        if token.cancelled:
            raise RunStopped(f"Run stopped before {node.label}")

        context.log(NodeStatus.RUNNING, f"Starting {node.kind} execution...")
        if self.config.logging.show_node_transitions:
            self._logger.node(f"→ {node.label} ({node.id})")

        handler_cls = get_handler(node.kind)
        if handler_cls is None:
            context.log(NodeStatus.COMPLETED, f"{node.kind} executed (no specific behavior)")
            self._logger.debug(f"No handler for kind '{node.kind}', passing input through")
            return data

        try:
            handler = handler_cls()
            config = handler.parse_config(node)
            output = await handler.run(node, config, data, context)
        except RunStopped:
            self._logger.info(f"Discarded {node.label} ({node.id}): run stopped")
            raise
        except Exception as e:
            context.log(NodeStatus.ERROR, f"Error: {e}")
            self._logger.error(f"Error in node {node.id} ({node.label}): {e}")
            raise

        if token.cancelled:
            self._logger.info(f"Discarded {node.label} ({node.id}): run stopped")
            raise RunStopped(f"Discarded result of {node.label} after stop")

        context.log(NodeStatus.COMPLETED, output.message)
        if self.config.logging.show_payloads:
            log_payload(self._logger, output.data, prefix=f"{node.id}.")
        return output.data
