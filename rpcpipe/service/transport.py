"""Terminal HTTP service backed by httpx."""

from __future__ import annotations

import logging
import ssl
from collections.abc import Awaitable

import httpx

from rpcpipe.service.base import Service

logger = logging.getLogger(__name__)

# Client-level timeout; per-request timeouts set by the request builder take precedence
DEFAULT_TIMEOUT = 30.0


class HttpTransport(Service):
    """Send fully-formed ``httpx.Request`` objects and return the raw response.

    The transport never inspects status codes or bodies; that is left to the
    layers above it. Transport failures surface as ``httpx.HTTPError``.

    The underlying ``httpx.AsyncClient`` is created lazily on first call and
    reused afterwards. A client passed in explicitly is owned by the transport
    from then on and closed by ``aclose()``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool | str | ssl.SSLContext = True,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._verify = verify

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client.

        Returns:
            The httpx.AsyncClient instance used for every request.
        """
        if self._client is None:
            try:
                self._client = httpx.AsyncClient(timeout=self._timeout, verify=self._verify)
            except FileNotFoundError:
                # certifi installed but its CA bundle is missing
                logger.warning(
                    "SSL certificate bundle not found (certifi issue?), "
                    "falling back to system certificates"
                )
                self._client = httpx.AsyncClient(
                    timeout=self._timeout, verify=ssl.create_default_context()
                )
        return self._client

    def call(self, request: httpx.Request) -> Awaitable[httpx.Response]:
        return self._send(request)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        client = await self._ensure_client()
        logger.debug("HTTP %s %s", request.method, request.url)
        response = await client.send(request)
        logger.debug("HTTP %s from %s", response.status_code, request.url)
        return response

    async def aclose(self) -> None:
        """Close the HTTP client. Idempotent."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
