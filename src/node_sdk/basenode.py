"""
BaseNodeHandler - Abstract base class for node capability handlers.

A handler is registered against a node-type string and turns a node's
configuration plus whatever it reads from the run context into an output
value. Failures are raised as NodeConfigurationError (deterministic) or
NodeTransientError (may succeed on retry).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from workflow_engine.context import NodeContext
from workflow_engine.models import Node
from workflow_engine.templating import render_config

from .errors import NodeConfigurationError


# ==============================================================================
# BaseNodeHandler - Abstract base class
# ==============================================================================

class BaseNodeHandler(ABC):
    """
    Abstract base class for all node handlers.

    Handlers define:
    - type: Node type key (e.g. "gmail")
    - description: Catalog metadata dict
    - config_model: Optional pydantic model decoding the node's config
    - branching: True when the output selects live output handles

    And implement async execute(node, context).

    Example:

        class EchoConfig(BaseModel):
            message: str

        class EchoHandler(BaseNodeHandler):
            type = "echo"
            config_model = EchoConfig
            description = {
                "displayName": "Echo",
                "category": "action",
                "outputs": ["main"],
            }

            async def execute(self, node, context):
                config = self.parse_config(node, context)
                return {"message": config.message}
    """

    type: str = "base"

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "description": "",
        "category": "action",
        "icon": "box",
        "color": "#6B7280",
        "inputs": 1,
        "outputs": ["main"],
    }

    config_model: Optional[Type[BaseModel]] = None
    branching: bool = False

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"node.{self.type}")

    @abstractmethod
    async def execute(self, node: Node, context: NodeContext) -> Any:
        """
        Execute node operation.

        Returns:
            The node's output value (JSON-like)

        Raises:
            NodeConfigurationError: Missing/invalid configuration
            NodeTransientError: Provider or network failure
        """
        raise NotImplementedError

    def parse_config(self, node: Node, context: Optional[NodeContext] = None) -> Any:
        """
        Render templates in the node config and decode it into config_model.

        Raises:
            NodeConfigurationError: If a template or a field is invalid
        """
        raw = node.config
        if context is not None:
            raw = render_config(raw, context.run)
        if self.config_model is None:
            return raw

        try:
            return self.config_model.model_validate(raw)
        except ValidationError as e:
            raise NodeConfigurationError(
                f"Invalid config for node '{node.id}' ({node.type}): {_summarize(e.errors())}",
                node_id=node.id,
            ) from e

    def check_config(self, node: Node) -> Optional[str]:
        """
        Validate the raw config before a run.

        Fields that still hold a template are not type-checked; they are
        decoded again after rendering at dispatch.

        Returns:
            Error summary, or None when the config is acceptable
        """
        if self.config_model is None:
            return None
        try:
            self.config_model.model_validate(node.config)
        except ValidationError as e:
            errors = [
                err for err in e.errors()
                if not (isinstance(err.get("input"), str) and "{{" in err["input"])
            ]
            if errors:
                return _summarize(errors)
        return None


def _summarize(errors: Any) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(loc) for loc in err.get("loc", ())) or "config"
        parts.append(f"{location}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


# ==============================================================================
# FunctionHandler - Plain callables as handlers
# ==============================================================================

HandlerFunction = Callable[[Node, NodeContext], Union[Any, Awaitable[Any]]]


class FunctionHandler(BaseNodeHandler):
    """
    Adapt a sync or async callable ``(node, context) -> value`` into a handler.

    Sync callables are run in a worker thread.

    Usage:
        registry.register(FunctionHandler("trigger", lambda node, ctx: {"x": 1}))
    """

    def __init__(
        self,
        node_type: str,
        func: HandlerFunction,
        description: Optional[Dict[str, Any]] = None,
        branching: bool = False,
        config_model: Optional[Type[BaseModel]] = None,
    ) -> None:
        self.type = node_type
        self.description = {
            **BaseNodeHandler.description,
            "displayName": node_type,
            **(description or {}),
        }
        self.branching = branching
        self.config_model = config_model
        self._func = func
        super().__init__()

    async def execute(self, node: Node, context: NodeContext) -> Any:
        if inspect.iscoroutinefunction(self._func):
            return await self._func(node, context)
        # Plain callables run off the event loop so the node timeout still fires
        result = await asyncio.to_thread(self._func, node, context)
        if inspect.isawaitable(result):
            result = await result
        return result


__all__ = [
    "BaseNodeHandler",
    "FunctionHandler",
    "HandlerFunction",
    "NodeContext",
]
