"""Service and layer building blocks.

A ``Service`` is one unit of an rpcpipe pipeline. Callers must follow a two-step
protocol for every dispatch:

    await service.poll_ready()      # wait until the service can accept a call
    awaitable = service.call(req)   # consume that readiness, start the call
    response = await awaitable      # wait for the outcome

``call`` is a plain method that returns an awaitable. Any synchronous
bookkeeping a service needs (assigning request ids, consulting a cache, taking
a concurrency permit) happens inside ``call`` itself, so the caller can release
whatever serializes dispatch before it awaits the outcome.

A service may assume no other caller interleaves its own ``poll_ready`` and
``call`` between those two steps. ``RpcClientSender`` enforces this.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any


class Service(ABC):
    """Abstract base class for pipeline services.

    Subclasses implement:
    - call(): start one call and return its awaitable

    and may override:
    - poll_ready(): wait for capacity (default: always ready)
    - aclose(): release resources (default: nothing to release)
    """

    async def poll_ready(self) -> None:
        """Wait until the service can accept a call.

        Raises:
            Exception: If the service has failed and cannot become ready.
        """
        return None

    @abstractmethod
    def call(self, request: Any) -> Awaitable[Any]:
        """Start a call. Must only be invoked after ``poll_ready`` completed.

        Args:
            request: The request to process.

        Returns:
            An awaitable resolving to the response, or raising the error.
        """
        ...

    async def aclose(self) -> None:
        """Release resources held by this service. Safe to call more than once."""
        return None


class LayeredService(Service):
    """A service that wraps an inner service.

    Readiness and closing are delegated to the inner service by default.
    """

    def __init__(self, inner: Service) -> None:
        self._inner = inner

    @property
    def inner(self) -> Service:
        return self._inner

    async def poll_ready(self) -> None:
        await self._inner.poll_ready()

    async def aclose(self) -> None:
        await self._inner.aclose()


class ServiceFn(Service):
    """Adapt an async function into a terminal service.

    Example:
        async def handler(request: Request) -> Any:
            return {"value": 1}

        service = ServiceFn(handler)
    """

    def __init__(self, f: Callable[[Any], Awaitable[Any]]) -> None:
        self._f = f

    def call(self, request: Any) -> Awaitable[Any]:
        return self._f(request)


def service_fn(f: Callable[[Any], Awaitable[Any]]) -> ServiceFn:
    """Return a terminal service that answers every call with ``await f(request)``."""
    return ServiceFn(f)


class LayerFn:
    """A layer backed by a plain ``f(inner) -> Service`` function."""

    def __init__(self, f: Callable[[Service], Service]) -> None:
        self._f = f

    def layer(self, inner: Service) -> Service:
        return self._f(inner)


def layer_fn(f: Callable[[Service], Service]) -> LayerFn:
    """Turn ``f(inner) -> Service`` into a layer."""
    return LayerFn(f)


class Identity:
    """A layer that returns the inner service unchanged."""

    def layer(self, inner: Service) -> Service:
        return inner


class Stack:
    """Two layers composed into one: ``outer`` wraps the result of ``inner``.

    Args:
        inner: Layer applied first (ends up closer to the wrapped service).
        outer: Layer applied second (ends up closer to the caller).
    """

    def __init__(self, inner: Any, outer: Any) -> None:
        self._inner = inner
        self._outer = outer

    def layer(self, service: Service) -> Service:
        return self._outer.layer(self._inner.layer(service))


async def ready(value: Any) -> Any:
    """An awaitable that resolves to ``value``; for services answering without I/O."""
    return value


async def failed(error: BaseException) -> Any:
    """An awaitable that raises ``error``."""
    raise error
