"""Time-bounded response cache for one RPC method.

Cache entries are keyed by the canonical JSON encoding of the call parameters,
so ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` share an entry. Callers always
receive their own deep copy of a cached response.

Concurrent calls for the same key that miss the cache are all forwarded; the
last one to complete wins the entry.
Parameters that have no canonical key are forwarded uncached.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

from rpcpipe.core.types import Request, RpcMethod, method_name
from rpcpipe.service.base import LayeredService, Service, ready

logger = logging.getLogger(__name__)


def cache_key(params: Any) -> str:
    """Canonical cache key for a parameter value.

    Object keys are strings on the wire, so ``{1: x}`` and ``{"1": x}`` map
    to the same key; both are sent as the same request body.

    Raises:
        TypeError: If a dict mixes key types that cannot be sorted.
    """
    return json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)


@dataclass
class CacheEntry:
    """A cached response and the monotonic time it was stored."""

    response: Any
    at: float

    def is_fresh(self, ttl: float, now: float) -> bool:
        return now - self.at < ttl


class ResponseCacheLayer:
    """Layer producing ``ResponseCacheService`` instances.

    Args:
        method: The only RPC method whose responses are cached.
        ttl: Time-to-live of an entry, in seconds.
        max_entries: Optional bound on the number of entries.
    """

    def __init__(self, method: RpcMethod, ttl: float, max_entries: int | None = None) -> None:
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got: {ttl}")
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got: {max_entries}")
        self._method = method
        self._ttl = ttl
        self._max_entries = max_entries

    def layer(self, inner: Service) -> ResponseCacheService:
        return ResponseCacheService(inner, self._method, self._ttl, self._max_entries)


class ResponseCacheService(LayeredService):
    """Serve repeated calls of one method from memory while they are fresh.

    Only successful responses are stored; a failed forward leaves any
    previous entry untouched and propagates the error.
    """

    def __init__(
        self,
        inner: Service,
        method: RpcMethod,
        ttl: float,
        max_entries: int | None = None,
    ) -> None:
        super().__init__(inner)
        self._method = method_name(method)
        self._ttl = ttl
        self._max_entries = max_entries
        self._entries: dict[str, CacheEntry] = {}
        # Never held across an await
        self._lock = threading.Lock()

    @property
    def method(self) -> str:
        return self._method

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, params: Any) -> CacheEntry | None:
        """Return a fresh entry for ``params`` holding a copy of the response, or None."""
        key = cache_key(params)
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_fresh(self._ttl, now):
                return None
            return CacheEntry(copy.deepcopy(entry.response), entry.at)

    def store(self, params: Any, response: Any) -> None:
        """Store ``response`` for ``params``, replacing any previous entry."""
        key = cache_key(params)
        now = time.monotonic()
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(copy.deepcopy(response), now)
            if self._max_entries is not None and len(self._entries) > self._max_entries:
                self._evict(now)

    def _evict(self, now: float) -> None:
        # Caller holds the lock
        for key in [k for k, e in self._entries.items() if not e.is_fresh(self._ttl, now)]:
            del self._entries[key]
        while len(self._entries) > self._max_entries:
            # dicts keep insertion order and store() re-inserts, so the first key is the oldest
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def purge_expired(self) -> int:
        """Drop every stale entry.

        Returns:
            The number of entries removed.
        """
        now = time.monotonic()
        with self._lock:
            stale = [k for k, e in self._entries.items() if not e.is_fresh(self._ttl, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Purged %d expired %s cache entries", len(stale), self._method)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def call(self, request: Request) -> Awaitable[Any]:
        method, params = request
        if method_name(method) != self._method:
            return self._inner.call(request)

        try:
            entry = self.lookup(params)
        except TypeError as e:
            logger.debug("Uncacheable %s params, forwarding: %s", self._method, e)
            return self._inner.call(request)
        if entry is not None:
            logger.debug("Cache hit: %s", self._method)
            return ready(entry.response)

        logger.debug("Cache miss: %s", self._method)
        return self._forward_and_store(params, self._inner.call(request))

    async def _forward_and_store(self, params: Any, pending: Awaitable[Any]) -> Any:
        response = await pending
        self.store(params, response)
        return response
