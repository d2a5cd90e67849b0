"""Retry middleware and the HTTP 429 (Too Many Requests) policy.

``Retry`` drives any ``RetryPolicy``; ``TooManyRequestsRetry`` is the policy
rpcpipe installs beneath the request builder so that throttled HTTP requests
are replayed after the backoff the server asks for.

Retry budget scope: the policy given to ``Retry`` is a template. Every call
works on its own ``policy.clone()``, so retries are bounded per logical call
and concurrent calls cannot drain each other's budget.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable
from typing import Any

import httpx

from rpcpipe.core.interfaces import RetryPolicy
from rpcpipe.service.base import LayeredService, Service
from rpcpipe.service.stats import record_rate_limited

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429

# Default backoff when the server gives no usable Retry-After hint (seconds)
DEFAULT_RETRY_DELAY = 0.5

# Retry-After values at or above this are not trusted (seconds)
MAX_RETRY_AFTER = 120


def retry_after_delay(response: httpx.Response) -> float:
    """Compute the backoff for a throttled response.

    Args:
        response: A 429 response.

    Returns:
        The integer ``Retry-After`` value in seconds when present, well-formed
        and below ``MAX_RETRY_AFTER``; otherwise ``DEFAULT_RETRY_DELAY``.
    """
    value = response.headers.get("retry-after")
    if value is None:
        return DEFAULT_RETRY_DELAY
    value = value.strip()
    if not value.isascii() or not value.isdigit():
        return DEFAULT_RETRY_DELAY
    seconds = int(value)
    if seconds >= MAX_RETRY_AFTER:
        return DEFAULT_RETRY_DELAY
    return float(seconds)


class TooManyRequestsRetry:
    """Replay requests the server throttled with HTTP 429.

    ``Retry`` mutates only the per-call clones, so on the instance handed to
    ``Retry`` both counters keep their initial values. Backoff across calls is
    accumulated in the sender's ``TransportStats.rate_limited_time``.

    Attributes:
        retries_remaining: Replays still allowed for this call.
        rate_limited_time: Backoff this clone asked for so far, in seconds.
    """

    def __init__(self, num_retries: int) -> None:
        if num_retries < 0:
            raise ValueError(f"num_retries must be >= 0, got: {num_retries}")
        self.retries_remaining = num_retries
        self.rate_limited_time = 0.0

    def retry(
        self,
        request: httpx.Request,
        response: httpx.Response | None,
        error: BaseException | None,
    ) -> float | None:
        if response is None or response.is_success:
            return None
        if response.status_code != TOO_MANY_REQUESTS or self.retries_remaining <= 0:
            return None

        delay = retry_after_delay(response)
        self.retries_remaining -= 1
        self.rate_limited_time += delay
        logger.debug(
            "Too many requests: server responded with %d, %d retries left, pausing for %.3fs",
            response.status_code,
            self.retries_remaining,
            delay,
        )
        return delay

    def clone_request(self, request: httpx.Request) -> httpx.Request:
        """Copy method, URL, headers, body and timeout so a replay is byte-identical."""
        return httpx.Request(
            request.method,
            request.url,
            headers=request.headers.copy(),
            content=request.content,
            extensions=dict(request.extensions),
        )

    def clone(self) -> TooManyRequestsRetry:
        return copy.copy(self)


class RetryLayer:
    """Layer producing ``Retry`` services around a policy template."""

    def __init__(self, policy: RetryPolicy[Any, Any]) -> None:
        self._policy = policy

    def layer(self, inner: Service) -> Retry:
        return Retry(inner, self._policy)


class Retry(LayeredService):
    """Replay calls to the inner service while the policy asks for it.

    Replays are dispatched from inside an in-flight call, outside whatever
    serializes dispatch above this service. So every attempt, the first one
    included, reaches the inner service through this service's own dispatch
    lock: inner ``poll_ready`` then inner ``call``, never interleaved with
    another attempt. ``poll_ready`` on the Retry itself is immediately ready;
    inner readiness is awaited per attempt.
    """

    def __init__(self, inner: Service, policy: RetryPolicy[Any, Any]) -> None:
        super().__init__(inner)
        self._policy = policy
        self._dispatch_lock = asyncio.Lock()

    @property
    def policy(self) -> RetryPolicy[Any, Any]:
        return self._policy

    async def poll_ready(self) -> None:
        return None

    def call(self, request: Any) -> Awaitable[Any]:
        policy = self._policy.clone()
        replay = policy.clone_request(request)
        return self._drive(policy, request, replay)

    async def _dispatch(self, request: Any) -> Awaitable[Any]:
        async with self._dispatch_lock:
            await self._inner.poll_ready()
            return self._inner.call(request)

    async def _drive(
        self,
        policy: RetryPolicy[Any, Any],
        first: Any,
        request: Any,
    ) -> Any:
        pending = await self._dispatch(first)
        while True:
            response: Any = None
            error: Exception | None = None
            try:
                response = await pending
            except Exception as e:
                error = e

            delay = None
            if request is not None:
                delay = policy.retry(request, response, error)
            if delay is None:
                if error is not None:
                    raise error
                return response

            record_rate_limited(delay)
            await asyncio.sleep(delay)

            replay = policy.clone_request(request)
            pending = await self._dispatch(request)
            request = replay
