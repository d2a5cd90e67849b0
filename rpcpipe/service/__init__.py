"""Service contract, HTTP services, sender adapter and pipeline builder."""

from rpcpipe.service.base import (
    Identity,
    LayeredService,
    LayerFn,
    Service,
    ServiceFn,
    Stack,
    failed,
    layer_fn,
    ready,
    service_fn,
)
from rpcpipe.service.stats import StatsRecorder, StatsUpdater, record_rate_limited
from rpcpipe.service.transport import HttpTransport
from rpcpipe.service.http_request import (
    DEFAULT_REQUEST_TIMEOUT,
    HttpRequestBuilderLayer,
    HttpRequestBuilderService,
)
from rpcpipe.service.parse_response import (
    ParseResponseBody,
    ParseResponseBodyLayer,
    parse_http_response,
)
from rpcpipe.service.sender import RpcClientSender
from rpcpipe.service.builder import (
    FnClientBuilder,
    HttpClientBuilder,
    PipelineBuilder,
    RpcClientBuilder,
    default_http_service,
    minimal_http_service,
)

__all__ = [
    # Contract
    "Service",
    "LayeredService",
    "ServiceFn",
    "service_fn",
    "LayerFn",
    "layer_fn",
    "Identity",
    "Stack",
    "ready",
    "failed",
    # Stats
    "StatsRecorder",
    "StatsUpdater",
    "record_rate_limited",
    # HTTP
    "HttpTransport",
    "DEFAULT_REQUEST_TIMEOUT",
    "HttpRequestBuilderLayer",
    "HttpRequestBuilderService",
    "ParseResponseBody",
    "ParseResponseBodyLayer",
    "parse_http_response",
    # Sender and builders
    "RpcClientSender",
    "PipelineBuilder",
    "RpcClientBuilder",
    "HttpClientBuilder",
    "FnClientBuilder",
    "default_http_service",
    "minimal_http_service",
]
