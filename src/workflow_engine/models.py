"""
Workflow Models - Node, edge and workflow definition structures.

Accepts both the flat form used by the engine and the shape persisted by
the visual editor (React Flow): ``{"id", "type", "data": {"type", "config"}}``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


def _first_of(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class NodePosition(BaseModel):
    """Node position in the canvas. Presentational only."""
    x: float = 0
    y: float = 0


class Node(BaseModel):
    """
    A typed unit of work in a workflow.

    Immutable for the duration of a run.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str = Field(..., description="Node id (unique within workflow)")
    type: str = Field(..., description="Node type key (e.g. 'gmail', 'condition')")
    config: Dict[str, Any] = Field(default_factory=dict)
    label: Optional[str] = Field(None, description="Display label")
    position: NodePosition = Field(default_factory=NodePosition)
    timeout_s: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("timeout_s", "timeoutSeconds"),
        description="Handler timeout override in seconds",
    )

    @model_validator(mode="before")
    @classmethod
    def _flatten_editor_shape(cls, data: Any) -> Any:
        """Lift ``data.type``/``data.config`` from the editor's persisted form."""
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            return data

        flat = {k: v for k, v in data.items() if k != "data"}
        node_data = data["data"]
        if node_data.get("type"):
            flat["type"] = node_data["type"]
        if "config" not in flat and node_data.get("config") is not None:
            flat["config"] = node_data["config"]
        if "label" not in flat and node_data.get("label"):
            flat["label"] = node_data["label"]
        return flat


class Edge(BaseModel):
    """
    Directed dependency between two nodes.

    Example: {"id": "e1", "source": "cond", "target": "mail", "sourceHandle": "true"}
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str = Field("", description="Edge id")
    source: str = Field(
        ...,
        validation_alias=AliasChoices("source", "sourceNodeId", "source_node_id"),
    )
    target: str = Field(
        ...,
        validation_alias=AliasChoices("target", "targetNodeId", "target_node_id"),
    )
    source_handle: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("source_handle", "sourceHandle"),
        description="Output port discriminator (e.g. 'true'/'false')",
    )
    target_handle: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("target_handle", "targetHandle"),
    )

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("id"):
            return data

        source = _first_of(data, "source", "sourceNodeId", "source_node_id")
        target = _first_of(data, "target", "targetNodeId", "target_node_id")
        handle = _first_of(data, "source_handle", "sourceHandle")
        edge_id = f"{source}->{target}"
        if handle:
            edge_id = f"{edge_id}:{handle}"
        return {**data, "id": edge_id}


class WorkflowDefinition(BaseModel):
    """
    Complete workflow definition as read from the definition store.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, description="Workflow ID")
    name: str = Field("Unnamed Workflow", description="Workflow name")
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(
        default_factory=list,
        validation_alias=AliasChoices("edges", "connections"),
    )

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_entry_nodes(self) -> List[Node]:
        """Nodes with no incoming edges (triggers)."""
        targets = {edge.target for edge in self.edges}
        return [node for node in self.nodes if node.id not in targets]


def parse_workflow(data: Dict[str, Any]) -> WorkflowDefinition:
    """Parse persisted workflow JSON into a WorkflowDefinition."""
    return WorkflowDefinition.model_validate(data)


__all__ = [
    "Node",
    "NodePosition",
    "Edge",
    "WorkflowDefinition",
    "parse_workflow",
]
