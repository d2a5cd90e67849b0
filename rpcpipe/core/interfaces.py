"""Core interfaces (protocols) for rpcpipe.

This module defines the Protocol interfaces that pipeline pieces implement.
Using Protocols enables structural subtyping: a layer or retry policy written
elsewhere composes with rpcpipe without inheriting from anything here. The
``Service`` contract itself is an abstract base class in
``rpcpipe.service.base`` because it carries shared default behavior.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from rpcpipe.core.types import RpcMethod, TransportStats
    from rpcpipe.service.base import Service

ReqT = TypeVar("ReqT")
RespT = TypeVar("RespT")


class Layer(Protocol):
    """Protocol for layers: wrap one service to produce another.

    Example:
        class LogLayer:
            def layer(self, inner: Service) -> Service:
                return LogService(inner)
    """

    def layer(self, inner: Service) -> Service:
        """Wrap ``inner`` and return the decorated service.

        Args:
            inner: The service to wrap.

        Returns:
            A service implementing the same poll_ready/call contract.
        """
        ...


class RetryPolicy(Protocol, Generic[ReqT, RespT]):
    """Protocol for policies driven by ``rpcpipe.middleware.retry.Retry``.

    A policy decides, after each attempt, whether the request should be
    replayed and how long to wait first. The Retry service calls ``clone()``
    once per logical call and mutates only that copy.
    """

    def retry(
        self,
        request: ReqT,
        response: RespT | None,
        error: BaseException | None,
    ) -> float | None:
        """Inspect the outcome of one attempt.

        Exactly one of ``response`` and ``error`` is set.

        Args:
            request: The request that produced this outcome.
            response: The response, if the attempt completed.
            error: The exception, if the attempt raised.

        Returns:
            Seconds to sleep before replaying, or None to stop and surface
            the outcome as-is.
        """
        ...

    def clone_request(self, request: ReqT) -> ReqT | None:
        """Return an equivalent copy of ``request`` for replay, or None if not replayable."""
        ...

    def clone(self) -> RetryPolicy[ReqT, RespT]:
        """Return a fresh copy of this policy for one logical call."""
        ...


class RpcSender(Protocol):
    """Protocol for the sender an RPC client dispatches every call through.

    This is the exact shape a higher-level RPC client (exposing getBalance,
    getVersion, ...) expects from any transport-side implementation.
    """

    async def send(self, request: RpcMethod, params: Any) -> Any:
        """Perform one RPC call.

        Args:
            request: The RPC method.
            params: JSON-like parameters.

        Returns:
            The JSON-RPC ``result`` value.

        Raises:
            ClientError: On any failure.
        """
        ...

    def get_transport_stats(self) -> TransportStats:
        """Return a snapshot of the transport statistics."""
        ...

    def url(self) -> str:
        """Return the endpoint identity of this sender."""
        ...
