"""Fan out one request to several providers and merge what they report.

:class:`CompositeProvider` is itself a :class:`~quillcheck.suggest.base.SuggestionProvider`
so the rest of the application only ever depends on "a provider".  Internally
it holds an ordered, immutable tuple of child providers:

1. Every child receives the same read-only :class:`AnalysisRequest`.
2. A child that fails contributes no issues for that cycle.  On the
   sequential synchronous path only
   :class:`~quillcheck.utils.errors.ProviderError` is absorbed; anything
   else is a programming error and propagates.  On the asynchronous path
   (also used by ``concurrent_sync``) every failure is mapped to an empty
   contribution before the results are joined, so the combined future never
   carries an exception.
3. Contributions are concatenated in child order, preserving each child's own
   ordering.  No sorting or de-duplication happens here; consumers use
   :meth:`Issue.dedup_key` or :mod:`quillcheck.suggest.fixes` for that.
4. Issues whose span falls outside the analysed text are dropped.
5. The merged result carries the composite's own wall-clock time and the
   ``"composite"`` version tag.  With no children the result is
   :meth:`AnalysisResult.empty`, exactly like :class:`NullProvider`.

The composite keeps no mutable state after construction, so one instance can
serve concurrent analysis cycles without locking.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import Executor, Future
from functools import partial
from time import perf_counter

from quillcheck.utils.constants import COMPOSITE_VERSION
from quillcheck.utils.errors import ProviderError
from quillcheck.utils.logging import get_logger
from quillcheck.utils.textspan import span_in_bounds
from quillcheck.utils.timing import elapsed_ms_since

from .base import (
    AnalysisRequest,
    AnalysisResult,
    Issue,
    SuggestionProvider,
    completed_future,
    require_request,
)

__all__ = ["CompositeProvider"]

logger = get_logger(__name__)

_Contribution = tuple[Issue, ...]


def _provider_name(provider: SuggestionProvider) -> str:
    try:
        return provider.name()
    except Exception:  # pragma: no cover - misbehaving provider
        return type(provider).__name__


class CompositeProvider(SuggestionProvider):
    """Run several providers against the same request and concatenate results.

    Parameters
    ----------
    children:
        Providers to consult, in order.  May be empty.
    executor:
        Pool used for asynchronous and concurrent dispatch.  ``None`` uses the
        package-wide pool from :func:`~quillcheck.suggest.base.default_executor`.
    concurrent_sync:
        When ``True`` :meth:`analyze` waits on :meth:`analyze_async` instead
        of running children one after another.  Ordering is unchanged, and
        every child failure is absorbed as on the asynchronous path.
    """

    def __init__(
        self,
        children: Iterable[SuggestionProvider] | None = None,
        *,
        executor: Executor | None = None,
        concurrent_sync: bool = False,
    ) -> None:
        kids = tuple(children or ())
        for child in kids:
            if not isinstance(child, SuggestionProvider):
                raise TypeError(f"not a SuggestionProvider: {child!r}")
        self._children: tuple[SuggestionProvider, ...] = kids
        self._executor = executor
        self._concurrent_sync = concurrent_sync

    @classmethod
    def of(cls, *children: SuggestionProvider, **kwargs: object) -> "CompositeProvider":
        """Build a composite from positional children."""

        return cls(children, **kwargs)  # type: ignore[arg-type]

    @property
    def children(self) -> tuple[SuggestionProvider, ...]:
        return self._children

    def __len__(self) -> int:
        return len(self._children)

    def name(self) -> str:
        return "composite"

    # ------------------------------------------------------------------
    # Synchronous fan-out
    # ------------------------------------------------------------------
    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        request = require_request(request)
        if not self._children:
            return AnalysisResult.empty()

        if self._concurrent_sync:
            # only the caller waits; children are joined through done callbacks
            return self.analyze_async(request).result()

        started = perf_counter()
        contributions = [self._analyze_child(child, request) for child in self._children]
        issues = self._merge(request, contributions)
        return AnalysisResult(issues, elapsed_ms_since(started), COMPOSITE_VERSION)

    def _analyze_child(
        self, child: SuggestionProvider, request: AnalysisRequest
    ) -> _Contribution:
        try:
            result = child.analyze(request)
        except ProviderError as exc:
            logger.warning("provider %s failed: %s", _provider_name(child), exc)
            return ()
        return result.issues if result is not None else ()

    # ------------------------------------------------------------------
    # Asynchronous fan-out
    # ------------------------------------------------------------------
    def analyze_async(
        self, request: AnalysisRequest, executor: Executor | None = None
    ) -> Future[AnalysisResult]:
        """Dispatch every child concurrently and settle once all of them settle.

        Each child's failure is turned into an empty contribution before the
        join.  No worker thread is blocked while waiting: the last child to
        settle assembles the merged result.
        """

        request = require_request(request)
        if not self._children:
            return completed_future(AnalysisResult.empty())

        pool = executor if executor is not None else self._executor
        started = perf_counter()
        outcome: Future[AnalysisResult] = Future()
        outcome.set_running_or_notify_cancel()

        contributions: list[_Contribution] = [()] * len(self._children)
        remaining = [len(self._children)]
        lock = threading.Lock()

        def _settle(index: int, child: SuggestionProvider, child_future: Future) -> None:
            contributions[index] = self._contribution(child, child_future)
            with lock:
                remaining[0] -= 1
                last = remaining[0] == 0
            if last:
                self._finish(outcome, request, contributions, started)

        for index, child in enumerate(self._children):
            try:
                child_future = child.analyze_async(request, pool)
            except Exception as exc:
                logger.warning("provider %s could not start: %s", _provider_name(child), exc)
                child_future = completed_future(AnalysisResult.empty())
            child_future.add_done_callback(partial(_settle, index, child))
        return outcome

    @staticmethod
    def _contribution(child: SuggestionProvider, child_future: Future) -> _Contribution:
        if child_future.cancelled():
            logger.warning("provider %s was cancelled", _provider_name(child))
            return ()
        exc = child_future.exception()
        if exc is not None:
            logger.warning("provider %s failed: %s", _provider_name(child), exc)
            return ()
        result = child_future.result()
        return result.issues if result is not None else ()

    def _finish(
        self,
        outcome: Future[AnalysisResult],
        request: AnalysisRequest,
        contributions: Sequence[_Contribution],
        started: float,
    ) -> None:
        try:
            issues = self._merge(request, contributions)
            result = AnalysisResult(issues, elapsed_ms_since(started), COMPOSITE_VERSION)
        except Exception:  # pragma: no cover - merge only reads immutable data
            logger.exception("could not merge provider results")
            result = AnalysisResult.empty()
        outcome.set_result(result)

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------
    @staticmethod
    def _merge(
        request: AnalysisRequest, contributions: Iterable[_Contribution]
    ) -> tuple[Issue, ...]:
        length = len(request.text)
        merged: list[Issue] = []
        for issues in contributions:
            for issue in issues:
                if not span_in_bounds(issue.start, issue.end, length):
                    logger.debug(
                        "dropping out-of-bounds issue %s from %s (text length %d)",
                        issue.dedup_key(),
                        issue.provider_name,
                        length,
                    )
                    continue
                merged.append(issue)
        return tuple(merged)
