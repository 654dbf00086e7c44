"""Portable workflow document.

The JSON form a workflow is exported to and imported from::

    {"nodes": [{"id", "type", "label", "position": {"x", "y"}, "config", "connected"}],
     "createdAt": "<ISO-8601>", "version": "1.0"}

Import is lenient: only the presence of a ``nodes`` list and an ``id`` on
every node entry are checked here. Unknown kinds and bad configs load fine
and surface when the node executes. Extra keys are ignored.
"""

import json
from datetime import datetime
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from contentflow.core.errors import WorkflowDocumentError
from contentflow.core.graph.nodes import WorkflowNode

DOCUMENT_VERSION = "1.0"


class WorkflowDocument(BaseModel):
    """A serialized workflow."""
    model_config = ConfigDict(populate_by_name=True)

    nodes: List[WorkflowNode] = Field(default_factory=list)
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat(), alias="createdAt")
    version: str = DOCUMENT_VERSION

    @classmethod
    def load(cls, data: Any) -> "WorkflowDocument":
        """Validate and build a document from its dictionary form.

        Raises:
            WorkflowDocumentError: If ``nodes`` is missing or not a list, or a
                node entry is not an object with an ``id``
        """
        if not isinstance(data, dict):
            raise WorkflowDocumentError("Invalid workflow document: expected a JSON object")
        nodes = data.get("nodes")
        if not isinstance(nodes, list):
            raise WorkflowDocumentError("Invalid workflow document: 'nodes' must be a list")
        for index, entry in enumerate(nodes):
            if not isinstance(entry, dict) or entry.get("id") in (None, ""):
                raise WorkflowDocumentError(f"Invalid workflow document: node #{index} has no id")
        fields: Dict[str, Any] = {"nodes": nodes}
        for key in ("createdAt", "version"):
            if isinstance(data.get(key), str):
                fields[key] = data[key]
        try:
            return cls.model_validate(fields)
        except ValidationError as e:
            error = e.errors()[0]
            where = ".".join(str(part) for part in error["loc"])
            raise WorkflowDocumentError(f"Invalid workflow document: {where}: {error['msg']}") from e

    @classmethod
    def from_json(cls, text: str) -> "WorkflowDocument":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise WorkflowDocumentError(f"Invalid workflow document: {e}") from e
        return cls.load(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_document() for node in self.nodes],
            "createdAt": self.created_at,
            "version": self.version,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
