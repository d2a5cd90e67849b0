"""Middleware layers: retry, response cache, early return, limits and combinators."""

from rpcpipe.middleware.cache import CacheEntry, ResponseCacheLayer, ResponseCacheService, cache_key
from rpcpipe.middleware.early_return import MaybeEarlyReturn, MaybeEarlyReturnLayer
from rpcpipe.middleware.limit import (
    AndThen,
    AndThenLayer,
    ConcurrencyLimit,
    ConcurrencyLimitLayer,
    Filter,
    FilterLayer,
    RateLimit,
    RateLimitLayer,
)
from rpcpipe.middleware.retry import (
    DEFAULT_RETRY_DELAY,
    MAX_RETRY_AFTER,
    Retry,
    RetryLayer,
    TooManyRequestsRetry,
    retry_after_delay,
)

__all__ = [
    # Cache
    "CacheEntry",
    "ResponseCacheLayer",
    "ResponseCacheService",
    "cache_key",
    # Early return
    "MaybeEarlyReturn",
    "MaybeEarlyReturnLayer",
    # Limits
    "AndThen",
    "AndThenLayer",
    "ConcurrencyLimit",
    "ConcurrencyLimitLayer",
    "Filter",
    "FilterLayer",
    "RateLimit",
    "RateLimitLayer",
    # Retry
    "DEFAULT_RETRY_DELAY",
    "MAX_RETRY_AFTER",
    "Retry",
    "RetryLayer",
    "TooManyRequestsRetry",
    "retry_after_delay",
]
