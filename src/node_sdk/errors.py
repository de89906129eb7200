"""
Handler errors - Typed failures raised by node handlers.

The taxonomy itself lives in the engine; this module re-exports it for
handler authors and adds the HTTP-specific error.
"""

from __future__ import annotations

from typing import Optional

from workflow_engine.errors import (
    ErrorKind,
    NodeConfigurationError,
    NodeOperationError,
    NodeTimeoutError,
    NodeTransientError,
)


class HttpApiError(NodeTransientError):
    """HTTP request failed or returned a retryable status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
        node_id: Optional[str] = None,
    ) -> None:
        super().__init__(message, node_id)
        self.status_code = status_code
        self.response_body = response_body
        self.url = url
        self.method = method

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)


__all__ = [
    "ErrorKind",
    "NodeOperationError",
    "NodeConfigurationError",
    "NodeTransientError",
    "NodeTimeoutError",
    "HttpApiError",
]
