"""Short-circuit calls before they reach the transport."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from rpcpipe.core.types import Request, RpcMethod, method_name
from rpcpipe.service.base import LayeredService, Service, failed, ready

logger = logging.getLogger(__name__)

EarlyReturnFn = Callable[[RpcMethod, Any], Any]


class MaybeEarlyReturnLayer:
    """Layer producing ``MaybeEarlyReturn`` services around ``f``."""

    def __init__(self, f: EarlyReturnFn) -> None:
        self._f = f

    def layer(self, inner: Service) -> MaybeEarlyReturn:
        return MaybeEarlyReturn(inner, self._f)


class MaybeEarlyReturn(LayeredService):
    """Answer a call locally when ``f(method, params)`` has an answer.

    ``f`` is called synchronously for every request:

    - a non-None return value is the response; the inner service is not called
    - None forwards the request unchanged
    - an exception completes the call with that exception, again without
      calling the inner service

    ``f`` runs on the event loop and must not block.

    Example:
        def offline_version(method, params):
            if method_name(method) == "getVersion":
                return {"solana-core": "offline"}
            return None

        layer = MaybeEarlyReturnLayer(offline_version)
    """

    def __init__(self, inner: Service, f: EarlyReturnFn) -> None:
        super().__init__(inner)
        self._f = f

    def call(self, request: Request) -> Awaitable[Any]:
        method, params = request
        try:
            value = self._f(method, params)
        except Exception as e:
            logger.debug("Early return with error for %s: %s", method_name(method), e)
            return failed(e)
        if value is None:
            return self._inner.call(request)
        logger.debug("Early return for %s", method_name(method))
        return ready(value)
