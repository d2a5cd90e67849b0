"""Transport statistics shared between a sender and its pipeline.

``RpcClientSender`` wraps every call in a ``StatsUpdater`` scope. While the
scope is active, its recorder is published through a context variable, so
middleware deep in the pipeline (the 429 retry policy) can report backoff time
without holding a reference to the sender:

    with StatsUpdater(recorder):
        ...                          # anywhere inside the awaited pipeline:
        record_rate_limited(0.5)     # adds to recorder's rate_limited_time

Each asyncio task carries its own context, so concurrent calls report into
their own scope.
"""

from __future__ import annotations

import dataclasses
import threading
import time
from contextvars import ContextVar
from types import TracebackType

from rpcpipe.core.types import TransportStats

_current_recorder: ContextVar[StatsRecorder | None] = ContextVar(
    "rpcpipe_current_stats_recorder",
    default=None,
)


class StatsRecorder:
    """Owns a TransportStats record and serializes updates to it.

    Snapshots may be taken from any thread while calls are updating it.
    """

    def __init__(self) -> None:
        self._stats = TransportStats()
        self._lock = threading.Lock()

    def snapshot(self) -> TransportStats:
        """Return a copy of the current counters."""
        with self._lock:
            return dataclasses.replace(self._stats)

    def call_started(self) -> None:
        with self._lock:
            self._stats.outstanding += 1

    def call_finished(self, elapsed: float, failed: bool) -> None:
        with self._lock:
            self._stats.outstanding -= 1
            self._stats.request_count += 1
            self._stats.elapsed_time += elapsed
            if failed:
                self._stats.error_count += 1

    def add_rate_limited(self, seconds: float) -> None:
        with self._lock:
            self._stats.rate_limited_time += seconds


class StatsUpdater:
    """Scope that accounts for one call on all exit paths.

    Entering increments ``outstanding``; exiting (normally, by exception, or by
    cancellation) decrements it and records the completed call.
    """

    def __init__(self, recorder: StatsRecorder) -> None:
        self._recorder = recorder
        self._start = 0.0
        self._token = None

    def __enter__(self) -> StatsUpdater:
        self._start = time.monotonic()
        self._recorder.call_started()
        self._token = _current_recorder.set(self._recorder)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _current_recorder.reset(self._token)
            self._token = None
        self._recorder.call_finished(time.monotonic() - self._start, failed=exc_type is not None)


def record_rate_limited(seconds: float) -> None:
    """Report backoff time to the stats scope of the current call, if any."""
    recorder = _current_recorder.get()
    if recorder is not None:
        recorder.add_rate_limited(seconds)
