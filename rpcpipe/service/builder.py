"""Assemble pipelines from layers and turn them into senders.

Layers run in the order they are added: the first one added sees each call
first, the last one added sits right above the terminal service.

Example:
    sender = (
        PipelineBuilder()
        .cache(RpcRequest.GET_BALANCE, ttl=1.0)
        .rate_limit(10, 1.0)
        .http(devnet_url())
        .retry_429(3)
        .timeout(10.0)
        .header("x-api-key", "...")
        .build_sender()
    )

Calls flow: cache -> rate limit -> response parser -> request builder ->
429 retry -> HTTP transport.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from rpcpipe.config.schema import Commitment, PipelineConfig
from rpcpipe.core.constants import LOCALNET_URL
from rpcpipe.core.errors import ConfigError
from rpcpipe.core.interfaces import Layer, RetryPolicy
from rpcpipe.core.types import RpcMethod
from rpcpipe.middleware.cache import ResponseCacheLayer
from rpcpipe.middleware.early_return import EarlyReturnFn, MaybeEarlyReturnLayer
from rpcpipe.middleware.limit import AndThenLayer, ConcurrencyLimitLayer, FilterLayer, RateLimitLayer
from rpcpipe.middleware.retry import RetryLayer, TooManyRequestsRetry
from rpcpipe.service.base import Identity, Service, ServiceFn
from rpcpipe.service.http_request import DEFAULT_REQUEST_TIMEOUT, HttpRequestBuilderLayer
from rpcpipe.service.parse_response import ParseResponseBodyLayer
from rpcpipe.service.sender import RpcClientSender
from rpcpipe.service.transport import HttpTransport

logger = logging.getLogger(__name__)

DEFAULT_RETRY_429 = 5

# Retry budget of the ready-made default_http_service()
DEFAULT_SERVICE_RETRIES = 4


class PipelineBuilder:
    """Accumulate layers, then wrap a terminal service with them."""

    def __init__(self) -> None:
        self._layers: list[Layer] = []

    @property
    def layers(self) -> list[Layer]:
        return list(self._layers)

    def layer(self, layer: Layer) -> PipelineBuilder:
        """Add a layer below all previously added ones."""
        self._layers.append(layer)
        return self

    def option_layer(self, layer: Layer | None) -> PipelineBuilder:
        """Add ``layer`` if given; None adds nothing."""
        return self.layer(layer if layer is not None else Identity())

    def rate_limit(self, num: int, per: float) -> PipelineBuilder:
        return self.layer(RateLimitLayer(num, per))

    def concurrency_limit(self, max_in_flight: int) -> PipelineBuilder:
        return self.layer(ConcurrencyLimitLayer(max_in_flight))

    def filter(self, predicate: Callable[[Any], Any]) -> PipelineBuilder:
        return self.layer(FilterLayer(predicate))

    def and_then(self, f: Callable[[Any], Awaitable[Any]]) -> PipelineBuilder:
        return self.layer(AndThenLayer(f))

    def early_return(self, f: EarlyReturnFn) -> PipelineBuilder:
        return self.layer(MaybeEarlyReturnLayer(f))

    def cache(
        self,
        method: RpcMethod,
        ttl: float,
        max_entries: int | None = None,
    ) -> PipelineBuilder:
        return self.layer(ResponseCacheLayer(method, ttl, max_entries))

    def retry(self, policy: RetryPolicy[Any, Any]) -> PipelineBuilder:
        return self.layer(RetryLayer(policy))

    def service(self, inner: Service) -> Service:
        """Wrap ``inner`` with every accumulated layer."""
        service = inner
        for layer in reversed(self._layers):
            service = layer.layer(service)
        return service

    def http(self, url: str) -> HttpClientBuilder:
        """Finish the pipeline with the HTTP layers and transport."""
        return HttpClientBuilder(self, url)

    def with_fn(self, f: Callable[[Any], Awaitable[Any]]) -> FnClientBuilder:
        """Finish the pipeline with ``f`` as the terminal service."""
        return FnClientBuilder(self, f)


RpcClientBuilder = PipelineBuilder


class HttpClientBuilder:
    """Options for the HTTP end of a pipeline.

    The response parser, request builder and (unless ``retry_429(0)``) the
    429 retry layer are added beneath the user's layers, above an
    ``HttpTransport``.
    """

    def __init__(self, builder: PipelineBuilder, url: str) -> None:
        self._builder = builder
        self._url = url
        self._retries = DEFAULT_RETRY_429
        self._timeout = DEFAULT_REQUEST_TIMEOUT
        self._headers: list[tuple[str, str]] = []
        self._client: httpx.AsyncClient | None = None
        self._commitment: Commitment | str | None = None

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig | Mapping[str, Any],
        builder: PipelineBuilder | None = None,
    ) -> HttpClientBuilder:
        """Create a builder from configuration.

        Args:
            config: A validated ``PipelineConfig`` or a raw mapping to validate.
            builder: Layers to put above the configured limits.

        Returns:
            An HttpClientBuilder with every configured option applied.

        Raises:
            ConfigError: If ``config`` is a mapping that fails validation.
        """
        if not isinstance(config, PipelineConfig):
            try:
                config = PipelineConfig.model_validate(config)
            except ValidationError as e:
                raise ConfigError(f"Invalid pipeline configuration: {e}") from e

        builder = builder if builder is not None else PipelineBuilder()
        if config.rate_limit is not None:
            builder.rate_limit(config.rate_limit.num, config.rate_limit.per)
        if config.concurrency_limit is not None:
            builder.concurrency_limit(config.concurrency_limit)

        http = (
            builder.http(config.url)
            .retry_429(config.retry_429)
            .timeout(config.request_timeout)
            .commitment(config.commitment)
        )
        for name, value in config.extra_headers.items():
            http.header(name, value)
        return http

    def retry_429(self, num_retries: int) -> HttpClientBuilder:
        """Set the 429 retry budget per call. 0 removes the retry layer."""
        if num_retries < 0:
            raise ValueError(f"num_retries must be >= 0, got: {num_retries}")
        self._retries = num_retries
        return self

    def timeout(self, seconds: float) -> HttpClientBuilder:
        self._timeout = seconds
        return self

    def header(self, name: str, value: str) -> HttpClientBuilder:
        self._headers.append((name, value))
        return self

    def client(self, client: httpx.AsyncClient) -> HttpClientBuilder:
        """Send through ``client`` instead of a lazily created one.

        The sender takes ownership and closes it on ``aclose()``.
        """
        self._client = client
        return self

    def commitment(self, commitment: Commitment | str) -> HttpClientBuilder:
        self._commitment = commitment
        return self

    def build_service(self) -> Service:
        request_builder = HttpRequestBuilderLayer(self._url).with_timeout(self._timeout)
        for name, value in self._headers:
            request_builder.with_header(name, value)

        retry = RetryLayer(TooManyRequestsRetry(self._retries)) if self._retries > 0 else None
        http_layers = (
            PipelineBuilder()
            .layer(ParseResponseBodyLayer())
            .layer(request_builder)
            .option_layer(retry)
        )
        transport = HttpTransport(client=self._client, timeout=self._timeout)
        return self._builder.service(http_layers.service(transport))

    def build_sender(self) -> RpcClientSender:
        logger.debug(
            "Building HTTP sender: url=%s, retry_429=%d, timeout=%s",
            self._url,
            self._retries,
            self._timeout,
        )
        return RpcClientSender(self.build_service(), self._url, self._commitment)


class FnClientBuilder:
    """Options for a pipeline ending in a caller-supplied async function.

    Useful for tests and offline tooling:

        async def node(request: Request) -> Any:
            return {"context": {"slot": 1}, "value": 0}

        sender = PipelineBuilder().with_fn(node).build_sender()
    """

    def __init__(self, builder: PipelineBuilder, f: Callable[[Any], Awaitable[Any]]) -> None:
        self._builder = builder
        self._f = f
        self._url = LOCALNET_URL
        self._commitment: Commitment | str | None = None

    def commitment(self, commitment: Commitment | str) -> FnClientBuilder:
        self._commitment = commitment
        return self

    def mock_url(self, url: str) -> FnClientBuilder:
        """Set the URL the sender reports; nothing is sent there."""
        self._url = url
        return self

    def build_service(self) -> Service:
        return self._builder.service(ServiceFn(self._f))

    def build_sender(self) -> RpcClientSender:
        return RpcClientSender(self.build_service(), self._url, self._commitment)


def default_http_service(url: str) -> Service:
    """Response parser, request builder and 429 retry (4 replays) over a fresh transport."""
    return PipelineBuilder().http(url).retry_429(DEFAULT_SERVICE_RETRIES).build_service()


def minimal_http_service(url: str) -> Service:
    """Response parser and request builder over a fresh transport, without retrying."""
    return PipelineBuilder().http(url).retry_429(0).build_service()
