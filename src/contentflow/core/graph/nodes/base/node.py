"""Base node classes for the workflow graph.

This module defines the two halves of a node:

- ``WorkflowNode``: the vertex stored in the graph (id, kind, label, position,
  config, outgoing edges). It is pure data and is what the portable document
  serializes.
- ``NodeHandler``: the behavior of one node kind. A handler validates the
  node's ``config`` against its own pydantic model, reads what it needs from
  the input payload, calls its collaborator through a ``NodeContext`` and
  returns a ``NodeOutput``.

Typical Usage:
    - Subclass NodeHandler and set ``config_model``
    - Implement ``run`` and return a NodeOutput built from a copy of the payload
    - Register the class with ``@register_handler(NodeKind.X)``
"""

import abc
from typing import Any, Awaitable, ClassVar, Dict, List, Optional, Type, TypeVar, TYPE_CHECKING
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from contentflow.core.config import EngineConfig
from contentflow.core.errors import CollaboratorError, NodeConfigurationError, RunStopped, WorkflowError
from contentflow.core.graph.registry import NodeKind, label_for
from contentflow.core.graph.state import CancellationToken, ExecutionLogEntry, ExecutionTrace, NodeStatus
from contentflow.core.logging import LogComponent, get_logger

if TYPE_CHECKING:
    from contentflow.core.tools.base import Toolbox

logger = get_logger(LogComponent.NODES)

M = TypeVar("M", bound=BaseModel)


class Position(BaseModel):
    """Canvas coordinates. Irrelevant to execution."""
    x: float = 0.0
    y: float = 0.0


class WorkflowNode(BaseModel):
    """
    A vertex in the workflow graph.

    Attributes:
        id: Unique, stable identifier
        kind: Node kind string (serialized as ``type``); unknown kinds load fine
        label: Display name, defaulted from the registry label
        position: Canvas coordinates
        config: Kind-specific parameters, validated at execution time
        connected: Ordered, duplicate-free outgoing edges
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique identifier for this node")
    kind: str = Field(default="", alias="type")
    label: str = ""
    position: Position = Field(default_factory=Position)
    config: Dict[str, Any] = Field(default_factory=dict)
    connected: List[str] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def normalize_shape(cls, data: Any) -> Any:
        """Default any field whose stored value has the wrong shape.

        Imported documents are only checked for an ``id``; a null config, a
        string position or a scalar ``connected`` must still load.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("id") is not None and not isinstance(data["id"], str):
            data["id"] = str(data["id"])
        for key in ("type", "kind", "label"):
            if key in data and not isinstance(data[key], str):
                data.pop(key)
        if "config" in data and not isinstance(data["config"], dict):
            data.pop("config")
        if "position" in data:
            position = data.pop("position")
            if isinstance(position, dict):
                data["position"] = {
                    axis: value for axis, value in position.items()
                    if axis in ("x", "y") and isinstance(value, (int, float)) and not isinstance(value, bool)
                }
            elif isinstance(position, Position):
                data["position"] = position
        if "connected" in data:
            connected = data["connected"]
            data["connected"] = [target for target in connected if isinstance(target, str)] if isinstance(connected, list) else []
        return data

    @model_validator(mode='after')
    def validate_node(self) -> 'WorkflowNode':
        """Validate node configuration."""
        if not self.id:
            raise ValueError("Node must have an ID")
        if not self.label:
            self.label = label_for(self.kind) or self.id
        self.connected = [target for target in dict.fromkeys(self.connected) if target != self.id]
        return self

    def to_document(self) -> Dict[str, Any]:
        """Portable-document form of the node."""
        return self.model_dump(by_alias=True, mode="json")


class NodeConfig(BaseModel):
    """Base for per-kind configuration models.

    Fields are snake_case in Python and camelCase in the stored config.
    Unknown keys are kept so the config stays an open map.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class NodeOutput(BaseModel):
    """What a handler returns: the output payload and a one-line summary for the trace."""
    data: Dict[str, Any]
    message: str


class NodeContext:
    """Per-invocation view of the run, handed to handlers.

    Trace writes are dropped once the run was stopped, and ``call`` discards
    collaborator results that arrive after a stop.
    """

    def __init__(
        self,
        node: WorkflowNode,
        trace: ExecutionTrace,
        tools: "Toolbox",
        config: EngineConfig,
        token: CancellationToken,
    ):
        self.node = node
        self.trace = trace
        self.tools = tools
        self.config = config
        self.token = token

    @property
    def stopped(self) -> bool:
        return self.token.cancelled

    def log(self, status: NodeStatus, message: str, data: Optional[Any] = None) -> Optional[ExecutionLogEntry]:
        """Append a trace entry for this node unless the run was stopped."""
        if self.token.cancelled:
            return None
        return self.trace.add_log(self.node.id, self.node.label, status, message, data)

    def tool(self, name: str) -> Any:
        """Fetch a collaborator from the toolbox."""
        tool = self.tools.require(name)
        if self.config.logging.show_tool_calls:
            logger.tool(f"{self.node.label} ({self.node.id}) → {name}")
        return tool

    async def call(self, awaitable: Awaitable[Any], failure: str, response_model: Optional[Type[M]] = None) -> Any:
        """Await a collaborator call.

        Args:
            awaitable: The pending collaborator coroutine
            failure: Message prefix used when the call fails
            response_model: If given, the result is validated into this model

        Raises:
            CollaboratorError: If the call raised anything other than an engine error,
                or returned something that does not fit ``response_model``
            RunStopped: If the run was stopped while the call was in flight
        """
        try:
            result = await awaitable
        except WorkflowError:
            raise
        except Exception as e:
            raise CollaboratorError(f"{failure}: {e}") from e
        if self.token.cancelled:
            raise RunStopped(f"Discarded result of {self.node.label} after stop")
        if response_model is None:
            return result
        try:
            return response_model.model_validate(result)
        except ValidationError as e:
            raise CollaboratorError(f"{failure}: malformed response ({e.error_count()} errors)") from e


class NodeHandler(abc.ABC):
    """
    Abstract behavior of one node kind.

    Attributes:
        kind: Set by ``register_handler``
        config_model: Pydantic model the node's config is validated against
    """
    kind: ClassVar[NodeKind]
    config_model: ClassVar[Type[NodeConfig]] = NodeConfig

    def parse_config(self, node: WorkflowNode) -> NodeConfig:
        """Validate ``node.config`` for this kind.

        Raises:
            NodeConfigurationError: Naming the first missing or invalid field
        """
        try:
            return self.config_model.model_validate(node.config)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "config"
            if error["type"] == "missing":
                message = f"{node.label}: missing required config field '{field}'"
            else:
                reason = error["msg"].removeprefix("Value error, ")
                message = f"{node.label}: invalid config field '{field}': {reason}"
            raise NodeConfigurationError(message, field=field) from e

    @abc.abstractmethod
    async def run(
        self,
        node: WorkflowNode,
        config: NodeConfig,
        payload: Dict[str, Any],
        context: NodeContext,
    ) -> NodeOutput:
        """Execute the node. ``payload`` is already a private copy."""
        raise NotImplementedError("Subclasses must implement run()")
