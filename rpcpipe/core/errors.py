"""Typed exception hierarchy for rpcpipe.

Every error a pipeline can surface to the sender derives from ``ClientError``,
which is the error shape the surrounding RPC client understands. Middleware may
raise arbitrary exceptions; ``RpcClientSender`` wraps those into a plain
``ClientError`` tagged with the originating method.

    RpcPipeError
     +- ConfigError
     +- ClientError
         +- TransportError
         +- RpcResponseError
         +- MalformedResponseError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rpcpipe.core.types import RpcMethod
    from rpcpipe.rpc.types import RpcResponseErrorData


class RpcPipeError(Exception):
    """Base class for all rpcpipe errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(RpcPipeError):
    """Raised for invalid pipeline configuration."""


class ClientError(RpcPipeError):
    """Error shape expected by the RPC client that consumes a sender.

    Attributes:
        message: Human-readable description.
        request: The RPC method the failing call was made for, if known.
    """

    def __init__(self, message: str, request: RpcMethod | None = None) -> None:
        super().__init__(message)
        self.request = request


class TransportError(ClientError):
    """Raised when the HTTP transport failed (connect, timeout, protocol I/O)."""


class RpcResponseError(ClientError):
    """Raised when the node answered with a JSON-RPC ``error`` object.

    Attributes:
        code: JSON-RPC error code.
        rpc_message: The ``message`` field of the error object.
        data: Typed ``data`` payload for well-known codes, else None.
    """

    def __init__(
        self,
        code: int,
        message: str,
        data: RpcResponseErrorData | None = None,
        request: RpcMethod | None = None,
    ) -> None:
        self.code = code
        self.rpc_message = message
        self.data = data
        detail = str(data) if data is not None else ""
        super().__init__(f"RPC response error {code}: {message}; {detail}", request=request)


class MalformedResponseError(ClientError):
    """Raised when a response body is not a valid JSON-RPC response.

    Attributes:
        status_code: HTTP status of the offending response, if one was received.
        body: Raw body excerpt (capped) for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
        request: RpcMethod | None = None,
    ) -> None:
        super().__init__(message, request=request)
        self.status_code = status_code
        self.body = body
