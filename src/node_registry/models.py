"""
Node Registry Models - Catalog metadata for handlers and node packs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from node_sdk.basenode import BaseNodeHandler


NODE_CATEGORIES = ("trigger", "google", "ai", "action", "logic")


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node type.

    This is what the editor palette and the ``flowrun nodes`` command show;
    the handler itself is kept by the registry.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    node_type: str = Field(..., description="Unique node type identifier")
    node_pack: Optional[str] = Field(None, description="Source node pack")

    # Display
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    category: str = Field("action", description="trigger, google, ai, action or logic")
    icon: str = Field("box", description="Icon name")
    color: str = Field("#6B7280", description="Palette color")

    # Runtime
    inputs: int = Field(1, ge=0, description="Number of input ports")
    outputs: List[str] = Field(default_factory=lambda: ["main"], description="Output handle labels")
    branching: bool = Field(False, description="Output selects live output handles")
    handler_class: Optional[str] = Field(None, description="Fully qualified handler class")

    @classmethod
    def from_handler(cls, handler: BaseNodeHandler, node_type: Optional[str] = None) -> "NodeDefinition":
        """Create definition from a handler's ``description`` dict."""
        node_type = node_type or handler.type
        description: Dict[str, Any] = handler.description or {}

        inputs = description.get("inputs", 1)
        outputs = description.get("outputs", ["main"])

        return cls(
            node_type=node_type,
            display_name=description.get("displayName", node_type.replace("-", " ").title()),
            description=description.get("description", ""),
            category=description.get("category", "action"),
            icon=description.get("icon", "box"),
            color=description.get("color", "#6B7280"),
            inputs=inputs if isinstance(inputs, int) else 1,
            outputs=list(outputs) if isinstance(outputs, (list, tuple)) else ["main"],
            branching=bool(handler.branching),
            handler_class=f"{type(handler).__module__}.{type(handler).__name__}",
        )


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of handlers).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    name: str = Field(..., description="Pack name (e.g., 'core')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")

    # Contents
    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack"
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodePackManifest":
        """Create from dictionary."""
        return cls.model_validate(data)


__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "NODE_CATEGORIES",
]
