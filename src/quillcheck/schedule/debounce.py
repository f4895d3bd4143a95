"""Debounced analysis of a changing text.

:class:`DebouncedAnalyzer` sits between a text-change notification stream
and a provider.  Every notification cancels the pending cycle for its stream
and schedules a new one after the quiescence delay, so a burst of keystrokes
triggers a single cycle that analyses the text as of the last change.

Once a cycle has started it always runs to completion and its result is
always delivered to the sink, even if newer text has arrived in the meantime.
Sinks should therefore display the most recently delivered result.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable
from concurrent.futures import Executor, Future
from types import TracebackType
from typing import Protocol

from quillcheck.suggest.base import (
    AnalysisRequest,
    AnalysisResult,
    SuggestionProvider,
    completed_future,
)
from quillcheck.utils.logging import get_logger

from .timers import TimerService

__all__ = ["DebouncedAnalyzer", "DEFAULT_DELAY_MS", "DEFAULT_STREAM", "Timers"]

logger = get_logger(__name__)

DEFAULT_DELAY_MS = 250
DEFAULT_STREAM = "default"

ResultSink = Callable[[AnalysisResult], None]
RequestFactory = Callable[[str], AnalysisRequest]


class Timers(Protocol):
    """Timer facility used by :class:`DebouncedAnalyzer`."""

    def schedule(self, key: Hashable, delay_s: float, fn: Callable[[], None]) -> None: ...

    def cancel(self, key: Hashable) -> bool: ...

    def pending(self, key: Hashable) -> bool: ...

    def shutdown(self) -> None: ...


class DebouncedAnalyzer:
    """Throttle analysis cycles for rapidly changing text.

    Parameters
    ----------
    provider:
        Provider consulted once per cycle through ``analyze_async``.
    sink:
        Called with the :class:`AnalysisResult` of every completed cycle.
    delay_ms:
        Quiescence delay measured from the most recent change.
    request_factory:
        Builds the request for a text snapshot.  Defaults to
        :meth:`AnalysisRequest.of`.
    timers:
        Timer facility; a private :class:`TimerService` by default.
    executor:
        Passed through to ``provider.analyze_async``.
    """

    def __init__(
        self,
        provider: SuggestionProvider,
        sink: ResultSink,
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        request_factory: RequestFactory = AnalysisRequest.of,
        timers: Timers | None = None,
        executor: Executor | None = None,
    ) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._provider = provider
        self._sink = sink
        self._delay_s = delay_ms / 1000.0
        self._request_factory = request_factory
        self._timers: Timers = timers if timers is not None else TimerService()
        self._executor = executor
        self._lock = threading.Lock()
        self._pending_text: dict[Hashable, str] = {}
        self._cycles_started = 0
        self._closed = False

    @property
    def delay_ms(self) -> int:
        return int(round(self._delay_s * 1000))

    @property
    def cycles_started(self) -> int:
        with self._lock:
            return self._cycles_started

    def on_text_changed(self, text: str | None, stream: Hashable = DEFAULT_STREAM) -> None:
        """Record a change and (re)start the quiescence delay for ``stream``."""

        snapshot = "" if text is None else text
        with self._lock:
            if self._closed:
                logger.debug("ignoring change on %r after close", stream)
                return
            self._pending_text[stream] = snapshot
            self._timers.schedule(stream, self._delay_s, lambda: self._fire(stream, snapshot))

    def pending(self, stream: Hashable = DEFAULT_STREAM) -> bool:
        """Return ``True`` if a cycle is scheduled but has not started."""

        return self._timers.pending(stream)

    def cancel(self, stream: Hashable = DEFAULT_STREAM) -> bool:
        """Drop the pending cycle for ``stream``.  Started cycles are unaffected."""

        cancelled = self._timers.cancel(stream)
        with self._lock:
            self._pending_text.pop(stream, None)
        return cancelled

    def flush(self, stream: Hashable = DEFAULT_STREAM) -> Future[AnalysisResult] | None:
        """Start the pending cycle for ``stream`` now instead of after the delay."""

        if not self._timers.cancel(stream):
            return None
        with self._lock:
            text = self._pending_text.pop(stream, "")
        return self._start_cycle(text)

    def close(self) -> None:
        """Cancel every pending cycle.  Started cycles still deliver.

        Later change notifications are ignored.
        """

        with self._lock:
            self._closed = True
            self._pending_text.clear()
        self._timers.shutdown()

    def __enter__(self) -> "DebouncedAnalyzer":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------
    def _fire(self, stream: Hashable, text: str) -> None:
        with self._lock:
            if self._pending_text.get(stream) == text:
                del self._pending_text[stream]
        self._start_cycle(text)

    def _start_cycle(self, text: str) -> Future[AnalysisResult]:
        with self._lock:
            self._cycles_started += 1
            cycle = self._cycles_started
        logger.debug("analysis cycle %d started (%d chars)", cycle, len(text))
        try:
            request = self._request_factory(text)
            future = self._provider.analyze_async(request, self._executor)
        except Exception:
            logger.exception("analysis cycle %d could not start", cycle)
            future = completed_future(AnalysisResult.empty())
        future.add_done_callback(lambda f: self._deliver(cycle, f))
        return future

    def _deliver(self, cycle: int, future: Future[AnalysisResult]) -> None:
        if future.cancelled() or future.exception() is not None:
            logger.warning("analysis cycle %d failed; delivering empty result", cycle)
            result = AnalysisResult.empty()
        else:
            result = future.result()
        try:
            self._sink(result)
        except Exception:
            logger.exception("result sink raised for cycle %d", cycle)
