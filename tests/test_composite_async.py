from __future__ import annotations

import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor

import pytest

from quillcheck.suggest.base import (
    AnalysisRequest,
    AnalysisResult,
    Category,
    Issue,
    SuggestionProvider,
)
from quillcheck.suggest.composite import CompositeProvider
from quillcheck.utils.errors import ProviderError

TEXT = "Fix teh quick brun fox."


class SlowProvider(SuggestionProvider):
    def __init__(self, label: str, span: tuple[int, int], delay_s: float = 0.0) -> None:
        self.label = label
        self.span = span
        self.delay_s = delay_s

    def name(self) -> str:
        return self.label

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        if self.delay_s:
            time.sleep(self.delay_s)
        issue = Issue(
            start=self.span[0],
            end=self.span[1],
            category=Category.GRAMMAR,
            rule_id=self.label.upper(),
            provider_name=self.label,
        )
        return AnalysisResult((issue,), 0, self.label)


class FailingProvider(SuggestionProvider):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def name(self) -> str:
        return "failing"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        raise self.exc


class BrokenDispatchProvider(SuggestionProvider):
    """``analyze_async`` itself raises instead of returning a future."""

    def name(self) -> str:
        return "broken-dispatch"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:  # pragma: no cover - unused
        return AnalysisResult.empty()

    def analyze_async(
        self, request: AnalysisRequest, executor: Executor | None = None
    ) -> Future[AnalysisResult]:
        raise RuntimeError("cannot dispatch")


class RejectingProvider(SuggestionProvider):
    """Return a future that carries an exception."""

    def name(self) -> str:
        return "rejecting"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:  # pragma: no cover - unused
        return AnalysisResult.empty()

    def analyze_async(
        self, request: AnalysisRequest, executor: Executor | None = None
    ) -> Future[AnalysisResult]:
        future: Future[AnalysisResult] = Future()
        future.set_exception(ProviderError("rejected"))
        return future


class CancelledProvider(SuggestionProvider):
    def name(self) -> str:
        return "cancelled"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:  # pragma: no cover - unused
        return AnalysisResult.empty()

    def analyze_async(
        self, request: AnalysisRequest, executor: Executor | None = None
    ) -> Future[AnalysisResult]:
        future: Future[AnalysisResult] = Future()
        future.cancel()
        return future


class GatedProvider(SuggestionProvider):
    def __init__(self, gate: threading.Event) -> None:
        self.gate = gate

    def name(self) -> str:
        return "gated"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        self.gate.wait(5)
        return AnalysisResult.empty()


@pytest.fixture()
def pool():
    with ThreadPoolExecutor(max_workers=4) as executor:
        yield executor


def test_async_merges_in_child_order(pool: ThreadPoolExecutor) -> None:
    composite = CompositeProvider(
        [SlowProvider("first", (4, 7), 0.1), SlowProvider("second", (14, 18))], executor=pool
    )
    result = composite.analyze_async(AnalysisRequest.of(TEXT)).result(timeout=5)
    assert [i.provider_name for i in result.issues] == ["first", "second"]
    assert result.provider_version == "composite"


def test_async_runs_children_concurrently(pool: ThreadPoolExecutor) -> None:
    composite = CompositeProvider(
        [SlowProvider("a", (0, 3), 0.3), SlowProvider("b", (4, 7), 0.3)], executor=pool
    )
    started = time.perf_counter()
    result = composite.analyze_async(AnalysisRequest.of(TEXT)).result(timeout=5)
    elapsed = time.perf_counter() - started
    assert len(result.issues) == 2
    assert elapsed < 0.55


def test_async_failures_become_empty_contributions(pool: ThreadPoolExecutor) -> None:
    composite = CompositeProvider(
        [
            SlowProvider("ok", (4, 7)),
            FailingProvider(RuntimeError("bug")),
            FailingProvider(ProviderError("down")),
            BrokenDispatchProvider(),
            RejectingProvider(),
            CancelledProvider(),
            SlowProvider("also-ok", (14, 18)),
        ],
        executor=pool,
    )
    future = composite.analyze_async(AnalysisRequest.of(TEXT))
    result = future.result(timeout=5)
    assert future.exception() is None
    assert [i.provider_name for i in result.issues] == ["ok", "also-ok"]


def test_async_with_no_children_is_settled() -> None:
    future = CompositeProvider().analyze_async(AnalysisRequest.of(TEXT))
    assert future.done()
    assert future.result() is AnalysisResult.empty()


def test_async_result_cannot_be_cancelled(pool: ThreadPoolExecutor) -> None:
    gate = threading.Event()
    future = CompositeProvider([GatedProvider(gate)], executor=pool).analyze_async(
        AnalysisRequest.of(TEXT)
    )
    assert future.cancel() is False
    gate.set()
    assert future.result(timeout=5).issues == ()


def test_async_drops_out_of_bounds(pool: ThreadPoolExecutor) -> None:
    composite = CompositeProvider(
        [SlowProvider("inside", (0, 3)), SlowProvider("outside", (10, 99))], executor=pool
    )
    result = composite.analyze_async(AnalysisRequest.of(TEXT)).result(timeout=5)
    assert [i.provider_name for i in result.issues] == ["inside"]


def test_async_nested_composite(pool: ThreadPoolExecutor) -> None:
    inner = CompositeProvider([SlowProvider("a", (0, 3)), FailingProvider(ProviderError("x"))])
    outer = CompositeProvider([inner, SlowProvider("b", (4, 7))], executor=pool)
    result = outer.analyze_async(AnalysisRequest.of(TEXT)).result(timeout=5)
    assert [i.provider_name for i in result.issues] == ["a", "b"]


def test_async_explicit_executor_wins(pool: ThreadPoolExecutor) -> None:
    seen: list[str] = []

    class ThreadRecorder(SlowProvider):
        def analyze(self, request: AnalysisRequest) -> AnalysisResult:
            seen.append(threading.current_thread().name)
            return super().analyze(request)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="explicit") as explicit:
        composite = CompositeProvider([ThreadRecorder("r", (0, 1))], executor=pool)
        composite.analyze_async(AnalysisRequest.of(TEXT), explicit).result(timeout=5)
    assert seen and seen[0].startswith("explicit")


def test_async_rejects_missing_request() -> None:
    with pytest.raises(TypeError):
        CompositeProvider([SlowProvider("a", (0, 1))]).analyze_async(None)  # type: ignore[arg-type]
