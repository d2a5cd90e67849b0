"""Parse raw HTTP responses into JSON-RPC results or typed errors.

SECURITY: Error body excerpts are capped so a misbehaving node returning a huge
non-JSON body cannot inflate error messages and logs.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any

import httpx

from rpcpipe.core.errors import MalformedResponseError, TransportError
from rpcpipe.rpc.protocol import parse_response_errors
from rpcpipe.service.base import LayeredService, Service

logger = logging.getLogger(__name__)

MAX_ERROR_BODY_SIZE: int = 10 * 1024  # 10 KB


def parse_http_response(response: httpx.Response) -> Any:
    """Decode an HTTP response body as a JSON-RPC response.

    The HTTP status is not consulted on its own: a JSON-RPC body is honored
    whatever the status, and a non-JSON body is malformed whatever the status.

    Args:
        response: The raw transport response.

    Returns:
        The JSON-RPC ``result`` value.

    Raises:
        RpcResponseError: If the body carries a JSON-RPC ``error`` object.
        MalformedResponseError: If the body is not JSON or not JSON-RPC shaped.
    """
    try:
        data = response.json()
    except ValueError as e:
        excerpt = response.content[:MAX_ERROR_BODY_SIZE].decode(errors="replace")
        logger.warning("Non-JSON response body (HTTP %d): %s", response.status_code, excerpt)
        raise MalformedResponseError(
            f"HTTP {response.status_code}: response body is not valid JSON: {excerpt}",
            status_code=response.status_code,
            body=excerpt,
        ) from e

    try:
        return parse_response_errors(data)
    except MalformedResponseError as e:
        if e.status_code is None:
            e.status_code = response.status_code
        raise


class ParseResponseBodyLayer:
    """Layer producing ``ParseResponseBody`` services."""

    def layer(self, inner: Service) -> ParseResponseBody:
        return ParseResponseBody(inner)


class ParseResponseBody(LayeredService):
    """Turn the inner service's ``httpx.Response`` into a JSON-RPC result.

    Transport failures (``httpx.HTTPError``) become ``TransportError``.
    """

    def call(self, request: Any) -> Awaitable[Any]:
        return self._parse(self._inner.call(request))

    async def _parse(self, pending: Awaitable[httpx.Response]) -> Any:
        try:
            response = await pending
        except httpx.HTTPError as e:
            logger.warning("HTTP transport error: %s", e)
            raise TransportError(f"HTTP transport error: {e}") from e
        return parse_http_response(response)
