"""Bridge an assembled pipeline to the RPC client's ``send`` interface."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rpcpipe.config.schema import Commitment
from rpcpipe.core.errors import ClientError
from rpcpipe.core.types import Request, RpcMethod, TransportStats, method_name
from rpcpipe.service.base import Service
from rpcpipe.service.stats import StatsRecorder, StatsUpdater

logger = logging.getLogger(__name__)


class RpcClientSender:
    """Dispatch RPC calls through a pipeline service.

    Dispatch is serialized: one caller at a time runs the pipeline's
    ``poll_ready`` followed by ``call``. The lock is released as soon as
    ``call`` has returned its awaitable, so calls overlap while in flight.

    If ``poll_ready`` raises, the error is logged and the call is dispatched
    anyway; the pipeline then reports its own failure through the call.

    Usage:
        async with RpcClientSender.new_http(devnet_url()) as sender:
            balance = await sender.send(RpcRequest.GET_BALANCE, ["..."])
            print(sender.get_transport_stats())
    """

    def __init__(
        self,
        service: Service,
        url: str,
        commitment: Commitment | str | None = None,
    ) -> None:
        self._service = service
        self._url = str(url)
        self._commitment = Commitment(commitment) if commitment is not None else None
        self._stats = StatsRecorder()
        self._lock = asyncio.Lock()

    @classmethod
    def new_http(cls, url: str) -> RpcClientSender:
        """Create a sender over the default HTTP pipeline (429 retry with 4 replays)."""
        from rpcpipe.service.builder import default_http_service

        return cls(default_http_service(url), url)

    @property
    def commitment(self) -> Commitment | None:
        return self._commitment

    @property
    def service(self) -> Service:
        return self._service

    def url(self) -> str:
        return self._url

    def get_transport_stats(self) -> TransportStats:
        """Return a snapshot of the transport statistics."""
        return self._stats.snapshot()

    async def send(self, request: RpcMethod, params: Any) -> Any:
        """Run one RPC call through the pipeline.

        Args:
            request: The RPC method.
            params: JSON-like parameters.

        Returns:
            The response produced by the pipeline.

        Raises:
            ClientError: On any failure. Errors that are not already
                ``ClientError`` are wrapped, chained from the original.
        """
        with StatsUpdater(self._stats):
            try:
                async with self._lock:
                    try:
                        await self._service.poll_ready()
                    except Exception as e:
                        logger.error("Pipeline not ready for %s: %s", method_name(request), e)
                    pending = self._service.call(Request(request, params))
                return await pending
            except ClientError as e:
                if e.request is None:
                    e.request = request
                raise
            except Exception as e:
                logger.error("Pipeline error for %s: %s", method_name(request), e)
                raise ClientError(str(e), request=request) from e

    async def aclose(self) -> None:
        """Close the pipeline and the transport it owns."""
        await self._service.aclose()

    async def __aenter__(self) -> RpcClientSender:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
