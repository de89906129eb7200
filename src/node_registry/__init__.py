"""
Node Registry - Discovery and registration of node handlers.

This package provides:
- NodeDefinition: Metadata about a registered node type
- NodePackManifest: Package metadata for a node pack
- NodeRegistry: Central map from node-type string to handler

Supports entry-points based discovery for plugin node packs.
"""

from .models import NodeDefinition, NodePackManifest
from .registry import NodeRegistry, get_global_registry, reset_global_registry

__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "NodeRegistry",
    "get_global_registry",
    "reset_global_registry",
]
