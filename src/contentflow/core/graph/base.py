"""Graph Store

The editable workflow graph: a set of nodes keyed by id, each holding its
ordered outgoing edges. The store also carries the editor's selection and
connect-gesture state and converts the graph to and from the portable
document.

Example:
    ```python
    store = GraphStore()
    trigger = store.add_node(NodeKind.TRIGGER)
    scraper = store.add_node(NodeKind.CONTENT_SCRAPER)
    store.update_node_config(scraper.id, {"urls": ["https://example.com"]})
    store.connect(trigger.id, scraper.id)        # ConnectResult.CONNECTED

    document = store.serialize()
    restored = GraphStore()
    restored.deserialize(document)
    ```
"""

import logging
import random
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4
from pydantic import BaseModel, Field, PrivateAttr

from contentflow.core.graph.document import WorkflowDocument
from contentflow.core.graph.nodes import Position, WorkflowNode
from contentflow.core.graph.registry import NodeKind, get_kind_spec, resolve_kind
from contentflow.core.logging import LogComponent, get_logger

CANVAS_MIN = 50.0
CANVAS_MAX = 450.0


class ConnectResult(str, Enum):
    """Outcome of ``GraphStore.connect``."""
    CONNECTED = "connected"
    ALREADY_CONNECTED = "already_connected"
    SELF_LOOP = "self_loop"
    UNKNOWN_NODE = "unknown_node"


def is_trigger(node: WorkflowNode) -> bool:
    return resolve_kind(node.kind) == NodeKind.TRIGGER


def find_cycle(nodes: Dict[str, WorkflowNode]) -> Optional[List[str]]:
    """Return one cycle as a list of node ids (first id repeated at the end), or None."""
    visiting: List[str] = []
    done = set()

    def walk(node_id: str) -> Optional[List[str]]:
        if node_id in visiting:
            return visiting[visiting.index(node_id):] + [node_id]
        if node_id in done:
            return None
        visiting.append(node_id)
        for target in nodes[node_id].connected:
            if target in nodes:
                cycle = walk(target)
                if cycle:
                    return cycle
        visiting.pop()
        done.add(node_id)
        return None

    for node_id in nodes:
        cycle = walk(node_id)
        if cycle:
            return cycle
    return None


def validate_nodes(nodes: Dict[str, WorkflowNode], cycle_policy: Literal["skip", "reject"] = "skip") -> List[str]:
    """Check that a node set can be run.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors: List[str] = []
    if not nodes:
        errors.append("Add some nodes to run the workflow")
        return errors
    if not any(is_trigger(node) for node in nodes.values()):
        errors.append("Add a trigger node to start the workflow")
    if cycle_policy == "reject":
        cycle = find_cycle(nodes)
        if cycle:
            errors.append(f"Workflow contains a cycle: {' -> '.join(cycle)}")
    return errors


class GraphStore(BaseModel):
    """The workflow graph being edited.

    Attributes:
        nodes: Nodes by id, in insertion order
        selected_node_id: Node open in the editor, if any
        connecting_node_id: Source node of a connect gesture in progress, if any
    """
    nodes: Dict[str, WorkflowNode] = Field(default_factory=dict)
    selected_node_id: Optional[str] = None
    connecting_node_id: Optional[str] = None
    _logger: logging.Logger = PrivateAttr()

    def __init__(self, **data):
        super().__init__(**data)
        self._logger = get_logger(LogComponent.STORE)

    def add_node(self, kind: Any, position: Optional[Position] = None) -> WorkflowNode:
        """Create a node of ``kind`` with the registry defaults and select it.

        Args:
            kind: A NodeKind or kind string (legacy names accepted)
            position: Canvas position; random within the canvas if omitted

        Raises:
            ValueError: If the kind is unknown
        """
        spec = get_kind_spec(kind)
        node = WorkflowNode(
            id=f"{spec.kind.value}-{uuid4().hex}",
            kind=spec.kind.value,
            label=spec.label,
            position=position or Position(
                x=random.uniform(CANVAS_MIN, CANVAS_MAX),
                y=random.uniform(CANVAS_MIN, CANVAS_MAX),
            ),
            config=spec.new_config(),
        )
        self.nodes[node.id] = node
        self.selected_node_id = node.id
        self._logger.info(f"Added node: {node.id} of kind {node.kind}")
        return node

    def get_node(self, node_id: Optional[str]) -> Optional[WorkflowNode]:
        return self.nodes.get(node_id) if node_id else None

    def update_node_config(self, node_id: str, partial: Dict[str, Any]) -> None:
        """Shallow-merge ``partial`` into the node's config. Unknown ids are ignored."""
        node = self.nodes.get(node_id)
        if node is None:
            self._logger.debug(f"update_node_config: no node {node_id}")
            return
        node.config = {**node.config, **partial}

    def update_node(self, node_id: str, label: Optional[str] = None, position: Optional[Position] = None) -> None:
        """Rename or move a node. Unknown ids are ignored."""
        node = self.nodes.get(node_id)
        if node is None:
            return
        if label:
            node.label = label
        if position is not None:
            node.position = position

    def delete_node(self, node_id: str) -> None:
        """Remove a node and every edge pointing at it."""
        if self.nodes.pop(node_id, None) is None:
            return
        for node in self.nodes.values():
            if node_id in node.connected:
                node.connected = [target for target in node.connected if target != node_id]
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        if self.connecting_node_id == node_id:
            self.connecting_node_id = None
        self._logger.info(f"Deleted node: {node_id}")

    def select_node(self, node_id: Optional[str]) -> None:
        self.selected_node_id = node_id if node_id in self.nodes else None

    def begin_connect(self, node_id: str) -> None:
        """Start a connect gesture from ``node_id``."""
        if node_id in self.nodes:
            self.connecting_node_id = node_id

    def cancel_connect(self) -> None:
        self.connecting_node_id = None

    def connect(self, source_id: str, target_id: str) -> ConnectResult:
        """Add the edge ``source -> target``. Never raises; always ends the connect gesture."""
        self.connecting_node_id = None
        if source_id == target_id:
            return ConnectResult.SELF_LOOP
        source = self.nodes.get(source_id)
        if source is None or target_id not in self.nodes:
            return ConnectResult.UNKNOWN_NODE
        if target_id in source.connected:
            return ConnectResult.ALREADY_CONNECTED
        source.connected.append(target_id)
        self._logger.info(f"Added edge: {source_id} --> {target_id}")
        return ConnectResult.CONNECTED

    def disconnect_all(self, node_id: str) -> None:
        """Drop the node's outgoing edges; incoming edges stay."""
        node = self.nodes.get(node_id)
        if node is not None:
            node.connected = []

    def triggers(self) -> List[WorkflowNode]:
        """Trigger nodes in graph order."""
        return [node for node in self.nodes.values() if is_trigger(node)]

    def snapshot(self) -> Dict[str, WorkflowNode]:
        """Independent deep copy of the node set, for a runner."""
        return {node_id: node.model_copy(deep=True) for node_id, node in self.nodes.items()}

    def clear(self) -> None:
        self.nodes = {}
        self.selected_node_id = None
        self.connecting_node_id = None

    def validate(self, cycle_policy: Literal["skip", "reject"] = "skip") -> List[str]:
        """Validate the graph for running.

        Returns:
            List of validation error messages (empty if valid)
        """
        return validate_nodes(self.nodes, cycle_policy)

    def serialize(self) -> Dict[str, Any]:
        """Portable document of the current graph."""
        return WorkflowDocument(nodes=list(self.nodes.values())).to_dict()

    def deserialize(self, document: Any) -> None:
        """Replace the whole graph with the document's nodes and clear the selection.

        Raises:
            WorkflowDocumentError: If the document is malformed; the graph is left untouched
        """
        loaded = WorkflowDocument.load(document)
        nodes: Dict[str, WorkflowNode] = {}
        for node in loaded.nodes:
            if node.id in nodes:
                self._logger.warning(f"Duplicate node id {node.id} in document; keeping the last one")
            if resolve_kind(node.kind) is None:
                self._logger.warning(f"Node {node.id} has unknown kind '{node.kind}'")
            nodes[node.id] = node
        self.nodes = nodes
        self.selected_node_id = None
        self.connecting_node_id = None
        self._logger.info(f"Imported {len(nodes)} nodes")

    def to_json(self, indent: int = 2) -> str:
        return WorkflowDocument(nodes=list(self.nodes.values())).to_json(indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "GraphStore":
        store = cls()
        store.deserialize(WorkflowDocument.from_json(text).to_dict())
        return store

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes
