"""Unit tests for rate limit, concurrency limit, filter and and_then."""

import asyncio
import time

import pytest

from rpcpipe.core.errors import ClientError
from rpcpipe.core.types import Request
from rpcpipe.middleware.limit import (
    AndThenLayer,
    ConcurrencyLimit,
    ConcurrencyLimitLayer,
    FilterLayer,
    RateLimit,
    RateLimitLayer,
)
from rpcpipe.service.base import ServiceFn


async def echo(request):
    return request


async def dispatch(service, request):
    await service.poll_ready()
    return await service.call(request)


class TestRateLimit:
    """Tests for RateLimit."""

    @pytest.mark.asyncio
    async def test_allows_burst_within_window(self):
        """Up to num calls dispatch without waiting."""
        service = RateLimitLayer(3, 10.0).layer(ServiceFn(echo))
        start = time.monotonic()
        for i in range(3):
            assert await dispatch(service, i) == i
        assert time.monotonic() - start < 1.0

    @pytest.mark.asyncio
    async def test_waits_for_next_window(self):
        """Once the budget is spent, readiness waits for the window to end."""
        service = RateLimitLayer(2, 0.2).layer(ServiceFn(echo))
        start = time.monotonic()
        for i in range(3):
            await dispatch(service, i)
        assert time.monotonic() - start >= 0.15

    @pytest.mark.asyncio
    async def test_concurrent_waiters_share_one_window(self):
        """Two waiters woken by the same window end cannot both dispatch in it."""
        call_times = []

        async def stamp(request):
            call_times.append(time.monotonic())
            return request

        service = RateLimit(ServiceFn(stamp), 1, 0.2)
        await dispatch(service, "first")

        async def waiter(name):
            await service.poll_ready()
            return await service.call(name)

        assert await asyncio.gather(waiter("a"), waiter("b")) == ["a", "b"]
        assert len(call_times) == 3
        assert call_times[2] - call_times[1] >= 0.15

    def test_call_without_readiness_raises(self):
        """Calling while limited is a contract violation."""
        service = RateLimit(ServiceFn(echo), 1, 10.0)
        service.call("first").close()
        with pytest.raises(RuntimeError):
            service.call("second")

    @pytest.mark.parametrize("num, per", [(0, 1.0), (1, 0.0)])
    def test_invalid_arguments(self, num, per):
        """Non-positive budgets and windows are rejected."""
        with pytest.raises(ValueError):
            RateLimitLayer(num, per)


class TestConcurrencyLimit:
    """Tests for ConcurrencyLimit."""

    @pytest.mark.asyncio
    async def test_bounds_in_flight_calls(self):
        """No more than max calls run at once."""
        in_flight = 0
        peak = 0

        async def slow(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.02)
            in_flight -= 1
            return request

        service = ConcurrencyLimitLayer(2).layer(ServiceFn(slow))
        lock = asyncio.Lock()

        async def one(i):
            async with lock:
                await service.poll_ready()
                pending = service.call(i)
            return await pending

        results = await asyncio.gather(*(one(i) for i in range(5)))

        assert results == [0, 1, 2, 3, 4]
        assert peak == 2

    @pytest.mark.asyncio
    async def test_permit_released_on_error(self):
        """A failing call gives its permit back."""

        async def fail(request):
            raise RuntimeError("boom")

        service = ConcurrencyLimit(ServiceFn(fail), 1)
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await dispatch(service, "x")
        assert not service._semaphore.locked()

    @pytest.mark.asyncio
    async def test_repeated_poll_keeps_one_permit(self):
        """Polling twice before calling does not take two permits."""
        service = ConcurrencyLimit(ServiceFn(echo), 1)
        await service.poll_ready()
        await asyncio.wait_for(service.poll_ready(), timeout=0.5)
        assert await service.call("x") == "x"

    def test_call_without_readiness_raises(self):
        """Calling without a permit is a contract violation."""
        with pytest.raises(RuntimeError):
            ConcurrencyLimit(ServiceFn(echo), 1).call("x")


class TestFilter:
    """Tests for Filter."""

    @pytest.mark.asyncio
    async def test_forwards_returned_request(self):
        """The predicate's return value is what gets forwarded."""
        service = FilterLayer(lambda r: Request(r.method, ["rewritten"])).layer(ServiceFn(echo))
        result = await service.call(Request("getBalance", ["original"]))
        assert result == Request("getBalance", ["rewritten"])

    @pytest.mark.asyncio
    async def test_rejection_skips_inner(self):
        """A raising predicate rejects the call before the inner service."""
        calls = []

        async def node(request):
            calls.append(request)
            return request

        def no_airdrops(request):
            if request.name == "requestAirdrop":
                raise ClientError("airdrops disabled", request=request.name)
            return request

        service = FilterLayer(no_airdrops).layer(ServiceFn(node))
        with pytest.raises(ClientError):
            await service.call(Request("requestAirdrop", ["X", 1]))
        assert calls == []


class TestAndThen:
    """Tests for AndThen."""

    @pytest.mark.asyncio
    async def test_maps_success(self):
        """Successful responses are passed through the function."""

        async def value_only(response):
            return response["value"]

        async def node(request):
            return {"context": {"slot": 1}, "value": 50}

        service = AndThenLayer(value_only).layer(ServiceFn(node))
        assert await service.call(Request("getBalance")) == 50

    @pytest.mark.asyncio
    async def test_errors_pass_through(self):
        """Errors skip the function."""
        mapped = []

        async def record(response):
            mapped.append(response)
            return response

        async def fail(request):
            raise RuntimeError("boom")

        service = AndThenLayer(record).layer(ServiceFn(fail))
        with pytest.raises(RuntimeError):
            await service.call(Request("getBalance"))
        assert mapped == []
