"""Keyed, cancellable one-shot timers.

:class:`TimerService` schedules a callable to run after a delay under a key.
Scheduling again under the same key replaces the pending timer, and
:meth:`TimerService.cancel` drops it.  A callback that has already started is
never interrupted; a timer that was replaced between expiring and running its
callback does not run.  Waiting is done by :class:`threading.Timer`, not by
polling.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable

from quillcheck.utils.logging import get_logger

__all__ = ["TimerService"]

logger = get_logger(__name__)


class TimerService:
    """Schedule-by-key and cancel-by-key on daemon timer threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: dict[Hashable, threading.Timer] = {}
        self._closed = False

    def schedule(self, key: Hashable, delay_s: float, fn: Callable[[], None]) -> None:
        """Run ``fn`` after ``delay_s`` seconds unless replaced or cancelled first."""

        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        with self._lock:
            if self._closed:
                raise RuntimeError("timer service is shut down")
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()
            timer = threading.Timer(delay_s, self._fire, args=(key, fn))
            timer.daemon = True
            self._timers[key] = timer
            # _fire only runs fn if this timer is still the registered one
            timer.start()

    def _fire(self, key: Hashable, fn: Callable[[], None]) -> None:
        current = threading.current_thread()
        with self._lock:
            if self._timers.get(key) is not current:
                return
            del self._timers[key]
        fn()

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending timer for ``key``; return ``True`` if one was pending."""

        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._timers

    def shutdown(self) -> None:
        """Cancel every pending timer and refuse further schedules."""

        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            logger.debug("cancelled %d pending timers", len(timers))
