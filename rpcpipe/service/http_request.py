"""Build JSON-RPC HTTP requests from (method, params) pairs."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any

import httpx

from rpcpipe.core.constants import APPLICATION_JSON, SOLANA_CLIENT_HEADER, client_version
from rpcpipe.core.types import Request, method_name
from rpcpipe.rpc.protocol import jsonrpc_request_body
from rpcpipe.service.base import LayeredService, Service

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0

# Request ids are unsigned 64-bit and wrap on overflow
_REQUEST_ID_MASK = (1 << 64) - 1


class HttpRequestBuilderLayer:
    """Layer that turns ``Request`` values into ``httpx.Request`` objects.

    Example:
        layer = (
            HttpRequestBuilderLayer("https://api.devnet.solana.com")
            .with_header("x-api-key", "...")
            .with_timeout(10.0)
        )
    """

    def __init__(self, url: str | httpx.URL) -> None:
        self._url = httpx.URL(url)
        self._headers: list[tuple[str, str]] = []
        self._timeout = DEFAULT_REQUEST_TIMEOUT

    def with_header(self, name: str, value: str) -> HttpRequestBuilderLayer:
        """Add a header to every request. Repeated names are all sent."""
        self._headers.append((name, value))
        return self

    def with_timeout(self, timeout: float) -> HttpRequestBuilderLayer:
        """Set the per-request timeout in seconds."""
        self._timeout = timeout
        return self

    def layer(self, inner: Service) -> HttpRequestBuilderService:
        return HttpRequestBuilderService(
            inner,
            self._url,
            timeout=self._timeout,
            headers=httpx.Headers(self._headers),
        )


class HttpRequestBuilderService(LayeredService):
    """Assign request ids and build the JSON-RPC POST for each call.

    Default headers (``Content-Type`` and the ``solana-client`` identity) are
    only added when the configured headers do not already set them.
    """

    def __init__(
        self,
        inner: Service,
        url: str | httpx.URL,
        timeout: float | None = None,
        headers: httpx.Headers | dict[str, str] | None = None,
    ) -> None:
        super().__init__(inner)
        self._url = httpx.URL(url)
        self._timeout = timeout if timeout is not None else DEFAULT_REQUEST_TIMEOUT
        self._headers = httpx.Headers(headers)
        if SOLANA_CLIENT_HEADER not in self._headers:
            self._headers[SOLANA_CLIENT_HEADER] = client_version()
        if "content-type" not in self._headers:
            self._headers["Content-Type"] = APPLICATION_JSON
        self._request_id = 0

    @property
    def url(self) -> httpx.URL:
        return self._url

    def _next_request_id(self) -> int:
        request_id = self._request_id
        self._request_id = (request_id + 1) & _REQUEST_ID_MASK
        return request_id

    def build_request(self, request: Request) -> httpx.Request:
        """Build the HTTP request for one call, consuming the next request id."""
        method, params = request
        request_id = self._next_request_id()
        body = jsonrpc_request_body(method_name(method), params, request_id)
        logger.debug("RPC call: method=%s, id=%d", method_name(method), request_id)
        return httpx.Request(
            "POST",
            self._url,
            headers=self._headers,
            content=body.encode(),
            extensions={"timeout": httpx.Timeout(self._timeout).as_dict()},
        )

    def call(self, request: Request) -> Awaitable[Any]:
        return self._inner.call(self.build_request(request))
