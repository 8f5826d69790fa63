"""
HTTP Client - Timeout-bounded HTTP requests for nodes.

Registered as the ``http`` collaborator. Every request carries a
timeout; the engine itself never blocks outside node calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import requests
from requests.exceptions import RequestException, Timeout

from .errors import NodeApiError, NodeOperationError


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class NodeTimeoutError(NodeOperationError):
    """Raised when an HTTP request times out."""

    def __init__(self, message: str, timeout: float, url: str):
        self.timeout = timeout
        self.url = url
        super().__init__(message)


class HttpApiError(NodeApiError):
    """Error from HTTP request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message, status_code=status_code, response_body=response_body)
        self.url = url
        self.method = method


class HttpResponse:
    """
    Wrapper for HTTP response with convenient accessors.
    """

    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self._response.headers.get(name, default)

    @property
    def text(self) -> str:
        return self._response.text

    @property
    def url(self) -> str:
        return str(self._response.url)

    def json(self) -> Any:
        """Parse response as JSON."""
        return self._response.json()

    def json_or_text(self) -> Any:
        """Parsed JSON body, or raw text when the body is not JSON."""
        try:
            return self._response.json()
        except ValueError:
            return self._response.text

    @property
    def ok(self) -> bool:
        """True if status code is 2xx."""
        return self._response.ok

    def raise_for_status(self) -> None:
        """Raise HttpApiError if status code indicates error."""
        if not self.ok:
            raise HttpApiError(
                message=f"HTTP {self.status_code}: {self._response.reason}",
                status_code=self.status_code,
                response_body=self.text[:1000] if self.text else None,
                url=self.url,
                method=self._response.request.method if self._response.request else None,
            )


class HttpClient:
    """
    HTTP client with timeout enforcement.

    Usage:
        client = HttpClient(base_url="https://quote-api.jup.ag", timeout=10)
        response = client.get("/v6/quote", params={"inputMint": sol, "outputMint": usdc})
        data = response.json()
    """

    def __init__(
        self,
        base_url: str = "",
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        bearer_token: Optional[str] = None,
        api_key: Optional[str] = None,
        api_key_header: str = "X-API-Key",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Base URL for relative endpoints
            default_headers: Headers to include in all requests
            timeout: Default timeout in seconds
            bearer_token: Bearer token for Authorization header
            api_key: API key value
            api_key_header: Header name for API key
            session: Shared requests session (owned by the caller)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

        self.headers: Dict[str, str] = dict(default_headers or {})
        if bearer_token:
            self.headers["Authorization"] = f"Bearer {bearer_token}"
        if api_key:
            self.headers[api_key_header] = api_key

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        data: Optional[Union[Dict[str, Any], str, bytes]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """
        Make HTTP request with timeout enforcement.

        Returns:
            HttpResponse wrapper (not raised for non-2xx statuses)

        Raises:
            NodeTimeoutError: If request times out
            HttpApiError: If the request could not be sent
        """
        if endpoint.startswith(("http://", "https://")) or not self.base_url:
            url = endpoint
        else:
            url = f"{self.base_url}{endpoint}"

        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout or self.timeout

        logger.debug("HTTP %s %s", method, url)
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json,
                data=data,
                headers=request_headers,
                timeout=request_timeout,
                **kwargs,
            )
            return HttpResponse(response)

        except Timeout as e:
            raise NodeTimeoutError(
                message=f"Request timed out after {request_timeout}s",
                timeout=request_timeout,
                url=url,
            ) from e

        except RequestException as e:
            raise HttpApiError(
                message=f"Request failed: {e}",
                url=url,
                method=method,
            ) from e

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> HttpResponse:
        """Make GET request."""
        return self.request("GET", endpoint, params=params, **kwargs)

    def post(
        self,
        endpoint: str,
        json: Optional[Any] = None,
        data: Optional[Union[Dict[str, Any], str, bytes]] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """Make POST request."""
        return self.request("POST", endpoint, json=json, data=data, **kwargs)

    def put(self, endpoint: str, json: Optional[Any] = None, **kwargs: Any) -> HttpResponse:
        """Make PUT request."""
        return self.request("PUT", endpoint, json=json, **kwargs)

    def patch(self, endpoint: str, json: Optional[Any] = None, **kwargs: Any) -> HttpResponse:
        """Make PATCH request."""
        return self.request("PATCH", endpoint, json=json, **kwargs)

    def delete(self, endpoint: str, **kwargs: Any) -> HttpResponse:
        """Make DELETE request."""
        return self.request("DELETE", endpoint, **kwargs)

    def close(self) -> None:
        self._session.close()


__all__ = [
    "HttpClient",
    "HttpResponse",
    "HttpApiError",
    "NodeTimeoutError",
    "DEFAULT_TIMEOUT",
]
