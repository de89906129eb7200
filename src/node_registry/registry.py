"""
Node Registry - Central map from node-type string to handler.

Supports multiple discovery methods:
1. Manual registration (handler instances, classes or plain functions)
2. Node packs (manifest plus handler map)
3. Entry-points (for plugin node packs)
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Type, Union

from pydantic import BaseModel

from node_sdk.basenode import BaseNodeHandler, FunctionHandler, HandlerFunction
from workflow_engine.models import WorkflowDefinition

from .models import NodeDefinition, NodePackManifest


logger = logging.getLogger(__name__)

# Entry point group for node packs
NODE_PACK_ENTRY_POINT = "flowrun.nodepacks"

HandlerLike = Union[BaseNodeHandler, Type[BaseNodeHandler]]


class NodeRegistry:
    """
    Central registry for node handlers and their catalog metadata.

    Handlers can be registered via:
    - register(): A handler instance or class
    - register_function(): A plain sync or async callable
    - register_pack(): All handlers of a pack
    - discover_entry_points(): Installed plugin packs

    Usage:
        registry = NodeRegistry()
        registry.register(MyHandler())

        handler = registry.resolve("my-node")
        definition = registry.get_definition("my-node")
    """

    def __init__(self):
        """Initialize empty registry."""
        self._handlers: Dict[str, BaseNodeHandler] = {}
        self._definitions: Dict[str, NodeDefinition] = {}
        self._packs: Dict[str, NodePackManifest] = {}
        self._discovered = False

    def register(
        self,
        handler: HandlerLike,
        node_type: Optional[str] = None,
    ) -> NodeDefinition:
        """
        Register a handler.

        Args:
            handler: BaseNodeHandler instance, or a subclass to instantiate
            node_type: Override node type (uses handler.type if not provided)

        Returns:
            NodeDefinition for the registered node
        """
        if isinstance(handler, type):
            handler = handler()

        node_type = node_type or handler.type
        if node_type in self._handlers:
            logger.warning(f"Replacing handler for node type: {node_type}")

        definition = NodeDefinition.from_handler(handler, node_type)
        self._handlers[node_type] = handler
        self._definitions[node_type] = definition

        logger.debug(f"Registered node: {node_type}")
        return definition

    def register_function(
        self,
        node_type: str,
        func: HandlerFunction,
        description: Optional[Dict[str, Any]] = None,
        branching: bool = False,
        config_model: Optional[Type[BaseModel]] = None,
    ) -> NodeDefinition:
        """Register a plain ``(node, context) -> value`` callable."""
        handler = FunctionHandler(
            node_type,
            func,
            description=description,
            branching=branching,
            config_model=config_model,
        )
        return self.register(handler)

    def register_pack(
        self,
        manifest: NodePackManifest,
        handlers: Mapping[str, HandlerLike],
    ) -> None:
        """
        Register a node pack with its handlers.

        Args:
            manifest: Pack manifest
            handlers: Map of node_type -> handler
        """
        self._packs[manifest.name] = manifest

        for node_type, handler in handlers.items():
            definition = self.register(handler, node_type)
            definition.node_pack = manifest.name

        logger.info(f"Registered pack '{manifest.name}' with {len(handlers)} nodes")

    def discover_entry_points(self, force: bool = False) -> int:
        """
        Discover node packs via entry points.

        Entry points are declared in pyproject.toml:

            [project.entry-points."flowrun.nodepacks"]
            mypack = "mypack:register_nodes"

        The entry point should be a function that returns:
        - (manifest, handlers): Tuple of manifest and handler dict
        - Or just the handler dict

        Packs whose manifest name is already registered are left alone.

        Args:
            force: Re-discover even if already done

        Returns:
            Number of packs discovered
        """
        if self._discovered and not force:
            return 0

        count = 0
        for ep in entry_points(group=NODE_PACK_ENTRY_POINT):
            try:
                result = ep.load()()
            except Exception as e:
                logger.error(f"Failed to load node pack '{ep.name}': {e}")
                continue

            if isinstance(result, tuple):
                manifest, handlers = result
            else:
                handlers = result
                manifest = NodePackManifest(name=ep.name, nodes=list(handlers.keys()))

            if manifest.name in self._packs and not force:
                continue

            self.register_pack(manifest, handlers)
            count += 1
            logger.info(f"Discovered node pack: {ep.name}")

        self._discovered = True
        return count

    def resolve(self, node_type: str) -> Optional[BaseNodeHandler]:
        """Get the handler for a node type, or None if it is unknown."""
        return self._handlers.get(node_type)

    def get_definition(self, node_type: str) -> Optional[NodeDefinition]:
        """Get node definition by type."""
        return self._definitions.get(node_type)

    def list_definitions(self, category: Optional[str] = None) -> List[NodeDefinition]:
        """List registered node definitions, optionally for one category."""
        return [
            definition for definition in self._definitions.values()
            if category is None or definition.category == category
        ]

    def list_packs(self) -> List[NodePackManifest]:
        """List all registered packs."""
        return list(self._packs.values())

    def list_node_types(self) -> List[str]:
        """List all registered node types."""
        return list(self._handlers.keys())

    def branching_types(self) -> FrozenSet[str]:
        """Node types whose output selects live output handles."""
        return frozenset(
            node_type for node_type, handler in self._handlers.items() if handler.branching
        )

    def check_workflow(self, definition: WorkflowDefinition) -> Dict[str, str]:
        """
        Decode every node's configuration before a run.

        Fields holding templates are checked after rendering, at dispatch.

        Returns:
            Map of node id -> configuration error, in node order (empty if valid)
        """
        errors: Dict[str, str] = {}
        for node in definition.nodes:
            handler = self.resolve(node.type)
            if handler is None:
                errors[node.id] = f"Unknown node type: {node.type}"
                continue
            problem = handler.check_config(node)
            if problem:
                errors[node.id] = problem
        return errors

    def has_node(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return node_type in self._handlers

    def __len__(self) -> int:
        """Number of registered nodes."""
        return len(self._handlers)

    def __iter__(self) -> Iterator[NodeDefinition]:
        """Iterate over node definitions."""
        return iter(self._definitions.values())

    def __contains__(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return self.has_node(node_type)


# Global registry instance
_global_registry: Optional[NodeRegistry] = None


def get_global_registry() -> NodeRegistry:
    """Get the global node registry (lazy initialized with the core pack)."""
    global _global_registry
    if _global_registry is None:
        from nodepacks.core import register_nodes

        registry = NodeRegistry()
        registry.register_pack(*register_nodes())
        registry.discover_entry_points()
        _global_registry = registry
    return _global_registry


def reset_global_registry() -> None:
    """Drop the global registry (for testing)."""
    global _global_registry
    _global_registry = None


__all__ = [
    "NodeRegistry",
    "get_global_registry",
    "reset_global_registry",
    "NODE_PACK_ENTRY_POINT",
]
