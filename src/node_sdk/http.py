"""
HTTP Client - Timeout-bounded async HTTP requests for node handlers.

Every call carries an explicit timeout. Failures are mapped onto the node
error taxonomy: network problems, timeouts, 5xx, 408 and 429 are
transient; any other 4xx is a configuration problem of the node.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import httpx

from .errors import HttpApiError, NodeConfigurationError, NodeTimeoutError


logger = logging.getLogger(__name__)

# Default timeout in seconds
DEFAULT_TIMEOUT = 30

RETRYABLE_STATUS = frozenset({408, 429})


class HttpResponse:
    """
    Wrapper for HTTP response with convenient accessors.
    """

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    @property
    def text(self) -> str:
        return self._response.text

    def json(self) -> Any:
        """Parse response as JSON."""
        return self._response.json()

    def data(self) -> Any:
        """JSON body when the response is JSON, text otherwise."""
        content_type = self._response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return self._response.json()
            except ValueError:
                return self._response.text
        return self._response.text

    @property
    def ok(self) -> bool:
        """True if status code is 2xx."""
        return self._response.is_success

    def raise_for_status(self) -> None:
        """
        Raise the matching node error if status code indicates failure.

        Raises:
            HttpApiError: 5xx, 408, 429
            NodeConfigurationError: Other 4xx
        """
        if self.ok:
            return

        method = self._response.request.method
        url = str(self._response.request.url)
        body = self.text[:1000] if self.text else None
        message = f"HTTP {self.status_code} from {method} {url}"

        if self.status_code >= 500 or self.status_code in RETRYABLE_STATUS:
            raise HttpApiError(
                message=message,
                status_code=self.status_code,
                response_body=body,
                url=url,
                method=method,
            )
        raise NodeConfigurationError(f"{message}: {body or self._response.reason_phrase}")


class HttpClient:
    """
    Async HTTP client with timeout enforcement and credential injection.

    Usage:
        client = HttpClient(base_url="https://api.example.com")
        response = await client.get("/users", params={"limit": 10})
        data = response.json()
    """

    def __init__(
        self,
        base_url: str = "",
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        bearer_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Base URL for all requests
            default_headers: Headers to include in all requests
            timeout: Default timeout in seconds
            bearer_token: Bearer token for Authorization header
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        self.headers: Dict[str, str] = dict(default_headers or {})
        if bearer_token:
            self.headers["Authorization"] = f"Bearer {bearer_token}"

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        content: Optional[Union[str, bytes]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Make HTTP request with timeout enforcement.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, etc.)
            endpoint: URL endpoint (appended to base_url)
            params: Query parameters
            json: JSON body (auto-serialized)
            content: Raw body
            headers: Additional headers (merged with defaults)
            timeout: Override default timeout

        Returns:
            HttpResponse wrapper

        Raises:
            NodeTimeoutError: If request times out
            HttpApiError: If the request could not be completed
        """
        url = f"{self.base_url}{endpoint}" if self.base_url else endpoint
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout or self.timeout

        try:
            async with httpx.AsyncClient(
                timeout=request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method=method.upper(),
                    url=url,
                    params=params,
                    json=json,
                    content=content,
                    headers=request_headers,
                )
            return HttpResponse(response)

        except httpx.TimeoutException as e:
            raise NodeTimeoutError(
                f"Request to {url} timed out after {request_timeout}s",
                timeout=request_timeout,
            ) from e

        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise NodeConfigurationError(f"Invalid URL '{url}': {e}") from e

        except httpx.HTTPError as e:
            raise HttpApiError(
                message=f"Request failed: {e}",
                url=url,
                method=method,
            ) from e

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """Make GET request."""
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(
        self,
        endpoint: str,
        json: Optional[Any] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """Make POST request."""
        return await self.request("POST", endpoint, json=json, **kwargs)


__all__ = [
    "HttpClient",
    "HttpResponse",
    "DEFAULT_TIMEOUT",
]
