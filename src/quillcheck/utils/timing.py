"""Wall-clock timing helpers."""

from __future__ import annotations

from time import perf_counter
from types import TracebackType

__all__ = ["Timing", "elapsed_ms_since"]


class Timing:
    """Context manager measuring elapsed milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end = 0.0

    def __enter__(self) -> "Timing":
        self._start = perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._end = perf_counter()

    @property
    def ms(self) -> float:
        return (self._end - self._start) * 1000.0


def elapsed_ms_since(started: float) -> int:
    """Return whole milliseconds elapsed since ``started`` (a ``perf_counter`` value)."""

    return max(0, int((perf_counter() - started) * 1000.0))
