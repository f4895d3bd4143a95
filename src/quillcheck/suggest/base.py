"""Core suggestion model and provider protocol definitions.

This module defines the immutable primitives shared by every provider and the
aggregator.  Spans follow the half‑open interval convention ``[start, end)``
where ``start`` is inclusive and ``end`` is exclusive; zero-length spans mark
insertion points.  Providers must report spans that fall within the analysed
text.  Ordering, de-duplication and grouping are left to the consumer.

A provider implements :meth:`SuggestionProvider.analyze`.  The protocol ships
default bodies for :meth:`~SuggestionProvider.analyze_async` and
:meth:`~SuggestionProvider.normalize` which concrete providers inherit by
subclassing the protocol explicitly.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterable, Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Protocol, TypeVar, runtime_checkable

from quillcheck.utils.constants import DEFAULT_LANGUAGE, UNKNOWN_PROVIDER, UNKNOWN_RULE
from quillcheck.utils.errors import SpanOutOfBoundsError
from quillcheck.utils.logging import get_logger

__all__ = [
    "Category",
    "Severity",
    "Scope",
    "AnalysisRequest",
    "Issue",
    "AnalysisResult",
    "SuggestionProvider",
    "completed_future",
    "default_executor",
    "require_request",
]

logger = get_logger(__name__)

_E = TypeVar("_E", bound=Enum)


class Category(Enum):
    """Kind of problem reported by an :class:`Issue`."""

    SPELLING = "SPELLING"
    GRAMMAR = "GRAMMAR"
    STYLE = "STYLE"
    PUNCTUATION = "PUNCTUATION"


class Severity(Enum):
    """How strongly an :class:`Issue` should be surfaced."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Scope(Enum):
    """Portion of the text a request targets.  Providers may ignore it."""

    FULL_DOCUMENT = "FULL_DOCUMENT"
    SENTENCE = "SENTENCE"
    WINDOW = "WINDOW"


def _coerce_enum(enum_cls: type[_E], value: object, default: _E | None) -> _E:
    if value is None:
        if default is None:
            raise ValueError(f"{enum_cls.__name__} is required")
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str) and value.upper() in enum_cls.__members__:
        return enum_cls[value.upper()]
    if default is not None:
        return default
    raise ValueError(f"unknown {enum_cls.__name__}: {value!r}")


def _frozen_strings(values: Iterable[str] | None) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        return frozenset((values,))
    return frozenset(v for v in values if v is not None)


def _category_names(values: Iterable[Category | str] | Category | str | None) -> frozenset[str]:
    """Return upper-case :class:`Category` names, dropping unknown entries."""

    if values is None:
        return frozenset()
    if isinstance(values, (str, Category)):
        values = (values,)
    names: set[str] = set()
    for value in values:
        name = value.name if isinstance(value, Category) else str(value).strip().upper()
        if name in Category.__members__:
            names.add(name)
    return frozenset(names)


@dataclass(slots=True, frozen=True)
class AnalysisRequest:
    """Immutable description of what to analyse.

    ``None`` or unknown inputs normalize to safe defaults: empty text,
    ``"en-US"``, :attr:`Scope.FULL_DOCUMENT`, caret ``-1`` (unknown) and empty
    sets.  ``enabled_categories`` accepts :class:`Category` members or their
    names; unrecognized entries are dropped.  A request is created once per
    analysis cycle and shared read-only by every provider.
    """

    text: str = ""
    language: str = DEFAULT_LANGUAGE
    scope: Scope = Scope.FULL_DOCUMENT
    caret: int = -1
    enabled_categories: frozenset[str] = frozenset()
    disabled_rule_ids: frozenset[str] = frozenset()
    user_dictionary: frozenset[str] = frozenset()
    _user_words: frozenset[str] = field(
        default=frozenset(), init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        text = "" if self.text is None else str(self.text)
        language = self.language.strip() if isinstance(self.language, str) else ""
        caret = self.caret if isinstance(self.caret, int) and self.caret >= 0 else -1
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "language", language or DEFAULT_LANGUAGE)
        object.__setattr__(self, "scope", _coerce_enum(Scope, self.scope, Scope.FULL_DOCUMENT))
        object.__setattr__(self, "caret", caret)
        object.__setattr__(self, "enabled_categories", _category_names(self.enabled_categories))
        object.__setattr__(self, "disabled_rule_ids", _frozen_strings(self.disabled_rule_ids))
        object.__setattr__(self, "user_dictionary", _frozen_strings(self.user_dictionary))
        user_words = frozenset(w.lower() for w in self.user_dictionary)
        object.__setattr__(self, "_user_words", user_words)

    @classmethod
    def of(cls, text: str | None) -> "AnalysisRequest":
        """Return a request for ``text`` with every other field defaulted."""

        return cls(text="" if text is None else text)

    def category_enabled(self, category: Category) -> bool:
        """Return ``True`` if ``category`` passes the request's category filter.

        An empty ``enabled_categories`` set enables every category.
        """

        return not self.enabled_categories or category.name in self.enabled_categories

    def rule_enabled(self, rule_id: str) -> bool:
        """Return ``True`` unless ``rule_id`` was disabled by the caller."""

        return rule_id not in self.disabled_rule_ids

    def is_user_word(self, word: str) -> bool:
        """Return ``True`` if ``word`` is in the user dictionary (case-insensitive)."""

        return word.lower() in self._user_words


def _new_issue_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True, frozen=True)
class Issue:
    """One detected problem in the analysed text.

    ``start`` and ``end`` are character offsets following the half-open
    convention.  ``end < start`` or a negative ``start`` is rejected at
    construction with :class:`SpanOutOfBoundsError`; ``end == start`` is a
    valid zero-length span.
    """

    start: int
    end: int
    category: Category
    rule_id: str = UNKNOWN_RULE
    provider_name: str = UNKNOWN_PROVIDER
    severity: Severity = Severity.WARNING
    message: str = ""
    replacements: tuple[str, ...] = ()
    metadata: Mapping[str, object] = field(default_factory=dict, hash=False, compare=False)
    id: str = field(default_factory=_new_issue_id)

    def __post_init__(self) -> None:  # noqa: D401 - normalization and validation
        if self.start < 0 or self.end < self.start:
            raise SpanOutOfBoundsError(f"invalid span [{self.start}, {self.end})")
        object.__setattr__(self, "category", _coerce_enum(Category, self.category, None))
        object.__setattr__(
            self, "severity", _coerce_enum(Severity, self.severity, Severity.WARNING)
        )
        object.__setattr__(self, "rule_id", self.rule_id or UNKNOWN_RULE)
        object.__setattr__(self, "provider_name", self.provider_name or UNKNOWN_PROVIDER)
        object.__setattr__(self, "message", self.message or "")
        object.__setattr__(self, "replacements", tuple(self.replacements or ()))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))
        object.__setattr__(self, "id", self.id or _new_issue_id())

    @property
    def length(self) -> int:
        """Return span length in characters."""

        return self.end - self.start

    def dedup_key(self) -> str:
        """Return ``"<rule_id>@<start>:<end>"``, independent of the provider."""

        return f"{self.rule_id}@{self.start}:{self.end}"

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly representation."""

        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "provider": self.provider_name,
            "category": self.category.value,
            "severity": self.severity.value,
            "start": self.start,
            "end": self.end,
            "message": self.message,
            "replacements": list(self.replacements),
            "metadata": dict(self.metadata),
        }


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    """Normalized wrapper around the issues found by one provider."""

    issues: tuple[Issue, ...] = ()
    elapsed_ms: int = 0
    provider_version: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", tuple(self.issues or ()))
        object.__setattr__(self, "elapsed_ms", max(0, int(self.elapsed_ms or 0)))
        object.__setattr__(self, "provider_version", self.provider_version or "")

    @classmethod
    def empty(cls) -> "AnalysisResult":
        """Return the shared result with no issues, zero time and no version tag."""

        return _EMPTY_RESULT

    @property
    def is_empty(self) -> bool:
        return not self.issues


_EMPTY_RESULT = AnalysisResult()


def require_request(request: object) -> AnalysisRequest:
    """Return ``request`` or raise :class:`TypeError` when it is not a request."""

    if not isinstance(request, AnalysisRequest):
        raise TypeError(
            f"request must be an AnalysisRequest, got {type(request).__name__}"
        )
    return request


# ---------------------------------------------------------------------------
# Shared worker pool
# ---------------------------------------------------------------------------

_EXECUTOR_LOCK = threading.Lock()
_EXECUTOR: ThreadPoolExecutor | None = None


def default_executor() -> ThreadPoolExecutor:
    """Return the lazily created worker pool used by ``analyze_async``."""

    global _EXECUTOR
    with _EXECUTOR_LOCK:
        if _EXECUTOR is None:
            _EXECUTOR = ThreadPoolExecutor(thread_name_prefix="quillcheck")
        return _EXECUTOR


def completed_future(result: AnalysisResult) -> Future[AnalysisResult]:
    """Return an already settled future holding ``result``."""

    future: Future[AnalysisResult] = Future()
    future.set_result(result)
    return future


@runtime_checkable
class SuggestionProvider(Protocol):
    """Protocol for text-analysis providers.

    A provider analyses an :class:`AnalysisRequest` and returns an
    :class:`AnalysisResult`.  An empty result is a valid answer; unrecoverable
    trouble (I/O, timeouts, malformed backend responses) is reported by
    raising :class:`~quillcheck.utils.errors.ProviderError`.
    """

    def name(self) -> str:
        """Return a short, stable identifier for the provider."""

        ...

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Analyse ``request`` synchronously."""

        ...

    def analyze_async(
        self, request: AnalysisRequest, executor: Executor | None = None
    ) -> Future[AnalysisResult]:
        """Run :meth:`analyze` on a worker and return a future of its result.

        Any exception raised by :meth:`analyze` resolves the future to
        :meth:`AnalysisResult.empty` instead, so the returned future never
        carries an exception.
        """

        request = require_request(request)
        provider_name = self.name()

        def _run() -> AnalysisResult:
            try:
                return self.analyze(request)
            except Exception as exc:
                logger.warning("provider %s failed: %s", provider_name, exc)
                return AnalysisResult.empty()

        pool = executor if executor is not None else default_executor()
        try:
            return pool.submit(_run)
        except RuntimeError as exc:  # executor already shut down
            logger.warning("could not schedule provider %s: %s", provider_name, exc)
            return completed_future(AnalysisResult.empty())

    def normalize(self, issues: list[Issue]) -> list[Issue]:
        """Return ``issues`` post-processed by the provider.  Identity by default."""

        return issues
