"""
Node SDK - Building blocks for node handlers.

This package provides:
- BaseNodeHandler: Abstract base class for handler implementations
- FunctionHandler: Adapter turning a plain callable into a handler
- NodeContext: Per-dispatch accessor over the run context
- Typed handler errors and an async HTTP client
"""

from .basenode import BaseNodeHandler, FunctionHandler, HandlerFunction, NodeContext
from .errors import (
    ErrorKind,
    HttpApiError,
    NodeConfigurationError,
    NodeOperationError,
    NodeTimeoutError,
    NodeTransientError,
)
from .http import HttpClient, HttpResponse

__all__ = [
    # Base classes
    "BaseNodeHandler",
    "FunctionHandler",
    "HandlerFunction",
    # Context
    "NodeContext",
    # Errors
    "ErrorKind",
    "NodeOperationError",
    "NodeConfigurationError",
    "NodeTransientError",
    "NodeTimeoutError",
    "HttpApiError",
    # HTTP
    "HttpClient",
    "HttpResponse",
]
