"""rpcpipe: composable request pipelines for Solana JSON-RPC clients."""

from rpcpipe.config import Commitment, PipelineConfig, RateLimitConfig
from rpcpipe.core import (
    ClientError,
    ConfigError,
    MalformedResponseError,
    Request,
    RpcPipeError,
    RpcRequest,
    RpcResponseError,
    TransportError,
    TransportStats,
)
from rpcpipe.core.constants import __version__, devnet_url, localnet_url, mainnet_url
# rpcpipe.service must load before rpcpipe.middleware (the builder imports middleware modules)
from rpcpipe.service import (
    FnClientBuilder,
    HttpClientBuilder,
    PipelineBuilder,
    RpcClientBuilder,
    RpcClientSender,
    Service,
    default_http_service,
    minimal_http_service,
)
from rpcpipe.middleware import (
    MaybeEarlyReturnLayer,
    ResponseCacheLayer,
    RetryLayer,
    TooManyRequestsRetry,
)

__all__ = [
    "__version__",
    # Config
    "Commitment",
    "PipelineConfig",
    "RateLimitConfig",
    # Errors
    "RpcPipeError",
    "ConfigError",
    "ClientError",
    "TransportError",
    "RpcResponseError",
    "MalformedResponseError",
    # Types
    "Request",
    "RpcRequest",
    "TransportStats",
    # Middleware
    "MaybeEarlyReturnLayer",
    "ResponseCacheLayer",
    "RetryLayer",
    "TooManyRequestsRetry",
    # Pipeline
    "Service",
    "PipelineBuilder",
    "RpcClientBuilder",
    "HttpClientBuilder",
    "FnClientBuilder",
    "RpcClientSender",
    "default_http_service",
    "minimal_http_service",
    # Endpoints
    "localnet_url",
    "devnet_url",
    "mainnet_url",
]
