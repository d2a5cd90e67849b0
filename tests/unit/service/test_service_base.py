"""Unit tests for the Service contract helpers."""

import pytest

from rpcpipe.service.base import (
    Identity,
    LayeredService,
    Service,
    ServiceFn,
    Stack,
    failed,
    layer_fn,
    ready,
    service_fn,
)


class Tag(LayeredService):
    """Test service appending its name to string responses."""

    def __init__(self, inner: Service, name: str) -> None:
        super().__init__(inner)
        self.name = name

    def call(self, request):
        return self._wrap(self._inner.call(request))

    async def _wrap(self, pending):
        return f"{await pending}>{self.name}"


async def echo(request):
    return str(request)


class TestServiceFn:
    """Tests for ServiceFn and service_fn."""

    @pytest.mark.asyncio
    async def test_calls_function(self):
        """ServiceFn answers with the function's result."""
        service = service_fn(echo)
        await service.poll_ready()
        assert await service.call("x") == "x"

    @pytest.mark.asyncio
    async def test_default_readiness_and_close(self):
        """Services are ready immediately and close without error by default."""
        service = ServiceFn(echo)
        assert await service.poll_ready() is None
        await service.aclose()
        await service.aclose()


class TestLayers:
    """Tests for layer helpers and composition order."""

    @pytest.mark.asyncio
    async def test_stack_outer_wraps_inner(self):
        """In a Stack, the outer layer sees the response last."""
        stack = Stack(layer_fn(lambda s: Tag(s, "inner")), layer_fn(lambda s: Tag(s, "outer")))
        service = stack.layer(ServiceFn(echo))
        assert await service.call("r") == "r>inner>outer"

    @pytest.mark.asyncio
    async def test_identity_returns_service(self):
        """Identity leaves the service as-is."""
        service = ServiceFn(echo)
        assert Identity().layer(service) is service

    def test_layered_service_exposes_inner(self):
        """LayeredService keeps a reference to the wrapped service."""
        inner = ServiceFn(echo)
        assert Tag(inner, "t").inner is inner


class TestReadyAndFailed:
    """Tests for the ready and failed awaitables."""

    @pytest.mark.asyncio
    async def test_ready(self):
        """ready() resolves to its value."""
        assert await ready({"a": 1}) == {"a": 1}

    @pytest.mark.asyncio
    async def test_failed(self):
        """failed() raises its error."""
        with pytest.raises(KeyError):
            await failed(KeyError("k"))
