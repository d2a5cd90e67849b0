"""Generic limits and combinators.

These are deliberately small: they give pipelines plain rate limiting,
concurrency limiting, request filtering and response mapping with the same
poll_ready/call contract as every other service.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from rpcpipe.service.base import LayeredService, Service, failed

logger = logging.getLogger(__name__)


# =============================================================================
# Rate limit
# =============================================================================


class RateLimitLayer:
    """Allow at most ``num`` calls per ``per`` seconds."""

    def __init__(self, num: int, per: float) -> None:
        if num < 1:
            raise ValueError(f"num must be >= 1, got: {num}")
        if per <= 0:
            raise ValueError(f"per must be > 0, got: {per}")
        self._num = num
        self._per = per

    def layer(self, inner: Service) -> RateLimit:
        return RateLimit(inner, self._num, self._per)


class RateLimit(LayeredService):
    """Fixed-window rate limiter.

    Each window starts when the first call after the previous window is
    dispatched and lasts ``per`` seconds. Once ``num`` calls have been
    dispatched in a window, ``poll_ready`` sleeps until the window ends,
    and sleeps again if another caller used up the next window first.
    """

    def __init__(self, inner: Service, num: int, per: float) -> None:
        super().__init__(inner)
        self._num = num
        self._per = per
        self._until = time.monotonic()
        self._remaining = num
        self._limited = False

    async def poll_ready(self) -> None:
        # Another waiter may have reset and spent the window while we slept
        while self._limited:
            now = time.monotonic()
            if now >= self._until:
                self._reset(now)
                break
            delay = self._until - now
            logger.debug("Rate limit reached, waiting %.3fs", delay)
            await asyncio.sleep(delay)
        await self._inner.poll_ready()

    def _reset(self, now: float) -> None:
        self._until = now + self._per
        self._remaining = self._num
        self._limited = False

    def call(self, request: Any) -> Awaitable[Any]:
        if self._limited:
            raise RuntimeError("RateLimit.call() invoked before poll_ready()")
        now = time.monotonic()
        if now >= self._until:
            self._reset(now)
        if self._remaining > 1:
            self._remaining -= 1
        else:
            self._limited = True
        return self._inner.call(request)


# =============================================================================
# Concurrency limit
# =============================================================================


class ConcurrencyLimitLayer:
    """Allow at most ``max_in_flight`` calls to be in flight at once."""

    def __init__(self, max_in_flight: int) -> None:
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be >= 1, got: {max_in_flight}")
        self._max = max_in_flight

    def layer(self, inner: Service) -> ConcurrencyLimit:
        return ConcurrencyLimit(inner, self._max)


class ConcurrencyLimit(LayeredService):
    """Bound the number of in-flight calls with a semaphore.

    ``poll_ready`` takes a permit (waiting while none is free) and keeps it
    until the next ``call``, which hands it to that call. The permit is
    released when the call completes, fails, or is cancelled. Polling again
    while a permit is already held does not take a second one.
    """

    def __init__(self, inner: Service, max_in_flight: int) -> None:
        super().__init__(inner)
        self._semaphore = asyncio.Semaphore(max_in_flight)
        self._has_permit = False

    async def poll_ready(self) -> None:
        if not self._has_permit:
            await self._semaphore.acquire()
            self._has_permit = True
        await self._inner.poll_ready()

    def call(self, request: Any) -> Awaitable[Any]:
        if not self._has_permit:
            raise RuntimeError("ConcurrencyLimit.call() invoked before poll_ready()")
        self._has_permit = False
        try:
            pending = self._inner.call(request)
        except BaseException:
            self._semaphore.release()
            raise
        return self._guard(pending)

    async def _guard(self, pending: Awaitable[Any]) -> Any:
        try:
            return await pending
        finally:
            self._semaphore.release()


# =============================================================================
# Filter
# =============================================================================


class FilterLayer:
    """Check or rewrite every request with ``predicate`` before forwarding."""

    def __init__(self, predicate: Callable[[Any], Any]) -> None:
        self._predicate = predicate

    def layer(self, inner: Service) -> Filter:
        return Filter(inner, self._predicate)


class Filter(LayeredService):
    """Forward ``predicate(request)``; a raising predicate rejects the call.

    Example:
        def no_airdrops(request: Request) -> Request:
            if request.name == "requestAirdrop":
                raise ClientError("airdrops disabled", request=request.name)
            return request
    """

    def __init__(self, inner: Service, predicate: Callable[[Any], Any]) -> None:
        super().__init__(inner)
        self._predicate = predicate

    def call(self, request: Any) -> Awaitable[Any]:
        try:
            request = self._predicate(request)
        except Exception as e:
            logger.debug("Request rejected by filter: %s", e)
            return failed(e)
        return self._inner.call(request)


# =============================================================================
# AndThen
# =============================================================================


class AndThenLayer:
    """Map every successful response through ``await f(response)``."""

    def __init__(self, f: Callable[[Any], Awaitable[Any]]) -> None:
        self._f = f

    def layer(self, inner: Service) -> AndThen:
        return AndThen(inner, self._f)


class AndThen(LayeredService):
    def __init__(self, inner: Service, f: Callable[[Any], Awaitable[Any]]) -> None:
        super().__init__(inner)
        self._f = f

    def call(self, request: Any) -> Awaitable[Any]:
        return self._then(self._inner.call(request))

    async def _then(self, pending: Awaitable[Any]) -> Any:
        response = await pending
        return await self._f(response)
