"""
Engine errors - Structural graph errors and the typed failures raised
by node handlers.

Handlers signal failure by raising one of the Node* errors. The engine
turns the exception into a failed NodeOutput; nothing escapes a run.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Why a node or a run failed."""
    STRUCTURAL = "structural"  # Cyclic or malformed graph
    CONFIGURATION = "configuration"  # Deterministic, fails identically on retry
    TRANSIENT = "transient"  # I/O or timeout, a retry of the run may succeed
    CANCELLED = "cancelled"  # Run cancelled between nodes


class NodeOperationError(Exception):
    """Error during node operation."""

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(self, message: str, node_id: Optional[str] = None) -> None:
        self.message = message
        self.node_id = node_id
        super().__init__(message)


class NodeConfigurationError(NodeOperationError):
    """Unknown node type, missing required field, bad template reference."""

    kind = ErrorKind.CONFIGURATION


class NodeTransientError(NodeOperationError):
    """Provider or network failure."""

    kind = ErrorKind.TRANSIENT


class NodeTimeoutError(NodeTransientError):
    """Handler exceeded its time budget."""

    def __init__(
        self,
        message: str,
        timeout: float,
        node_id: Optional[str] = None,
    ) -> None:
        super().__init__(message, node_id)
        self.timeout = timeout


class GraphValidationError(ValueError):
    """Graph is cyclic or references nodes that do not exist."""

    kind = ErrorKind.STRUCTURAL


__all__ = [
    "ErrorKind",
    "NodeOperationError",
    "NodeConfigurationError",
    "NodeTransientError",
    "NodeTimeoutError",
    "GraphValidationError",
]
