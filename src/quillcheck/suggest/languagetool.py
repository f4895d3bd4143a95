"""LanguageTool-backed grammar and spelling provider.

The adapter wraps :mod:`language_tool_python`, an optional dependency
(``pip install quillcheck[languagetool]``).  The underlying tool is created
lazily on first use and is not thread-safe, so every check is serialised
through a lock.  Behaviour when the library is missing depends on
``require``:

* ``require=True``: :class:`~quillcheck.utils.errors.ProviderError` is
  raised, which an aggregating provider absorbs.
* ``require=False``: an empty result is returned and a warning is logged
  once.

LanguageTool offsets are clamped into the analysed text.  Rule suppression
and the user dictionary are applied to the returned matches rather than to
the tool's configuration, which keeps the shared tool free of per-request
state.
"""

from __future__ import annotations

import threading
from time import perf_counter
from typing import Any

from quillcheck.utils.constants import DEFAULT_LANGUAGE, UNKNOWN_RULE
from quillcheck.utils.errors import ProviderError
from quillcheck.utils.logging import get_logger
from quillcheck.utils.textspan import clamp_span
from quillcheck.utils.timing import elapsed_ms_since

from .base import (
    AnalysisRequest,
    AnalysisResult,
    Category,
    Issue,
    Severity,
    SuggestionProvider,
    require_request,
)

__all__ = ["LanguageToolProvider", "category_for", "get_provider"]

logger = get_logger(__name__)

_ISSUE_TYPES: dict[str, Category] = {
    "misspelling": Category.SPELLING,
    "typographical": Category.PUNCTUATION,
    "whitespace": Category.PUNCTUATION,
    "style": Category.STYLE,
    "register": Category.STYLE,
    "locale-violation": Category.STYLE,
}

_SEVERITIES: dict[Category, Severity] = {
    Category.SPELLING: Severity.ERROR,
    Category.GRAMMAR: Severity.WARNING,
    Category.PUNCTUATION: Severity.WARNING,
    Category.STYLE: Severity.INFO,
}


def category_for(issue_type: str | None, lt_category: str | None = None) -> Category:
    """Map a LanguageTool ``ruleIssueType``/category pair to a :class:`Category`."""

    if issue_type and issue_type.lower() in _ISSUE_TYPES:
        return _ISSUE_TYPES[issue_type.lower()]
    if lt_category:
        upper = lt_category.upper()
        if upper == "TYPOS":
            return Category.SPELLING
        if upper in {"PUNCTUATION", "TYPOGRAPHY"}:
            return Category.PUNCTUATION
        if upper in {"STYLE", "REDUNDANCY", "PLAIN_ENGLISH"}:
            return Category.STYLE
    return Category.GRAMMAR


class LanguageToolProvider(SuggestionProvider):
    """Report LanguageTool matches as issues.

    ``tool`` may be supplied to reuse an existing ``LanguageTool`` instance
    (or a compatible object exposing ``check(text)``).
    """

    def __init__(
        self,
        language: str | None = None,
        *,
        require: bool = False,
        tool: Any | None = None,
    ) -> None:
        self._language = (language or "").strip() or DEFAULT_LANGUAGE
        self._require = require
        self._tool = tool
        self._lock = threading.Lock()
        self._unavailable = False
        self._version = "languagetool"

    def name(self) -> str:
        return "languagetool"

    @property
    def language(self) -> str:
        return self._language

    # ------------------------------------------------------------------
    # Tool initialisation
    # ------------------------------------------------------------------
    def _ensure_tool(self) -> Any | None:
        if self._tool is not None or self._unavailable:
            return self._tool

        try:
            import language_tool_python
        except ImportError as exc:
            if self._require:
                raise ProviderError(
                    "language_tool_python is required. Install with "
                    "`pip install quillcheck[languagetool]`.",
                    provider=self.name(),
                    cause=exc,
                ) from exc
            logger.warning("language_tool_python is not installed; LanguageTool checks disabled")
            self._unavailable = True
            return None

        try:
            self._tool = language_tool_python.LanguageTool(self._language)
        except Exception as exc:
            raise ProviderError(
                f"could not start LanguageTool for {self._language}",
                provider=self.name(),
                cause=exc,
            ) from exc
        version = getattr(language_tool_python, "__version__", "")
        self._version = f"languagetool/{version}" if version else "languagetool"
        return self._tool

    def close(self) -> None:
        """Shut down the underlying tool if it was started."""

        with self._lock:
            tool, self._tool = self._tool, None
        if tool is not None and hasattr(tool, "close"):
            tool.close()

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------
    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        request = require_request(request)
        started = perf_counter()
        text = request.text

        with self._lock:
            tool = self._ensure_tool()
            if tool is None:
                return AnalysisResult((), elapsed_ms_since(started), self._version)
            try:
                matches = tool.check(text)
            except Exception as exc:
                raise ProviderError(
                    "LanguageTool check failed", provider=self.name(), cause=exc
                ) from exc

        issues: list[Issue] = []
        for match in matches:
            issue = self._to_issue(match, text)
            if not request.rule_enabled(issue.rule_id):
                continue
            if not request.category_enabled(issue.category):
                continue
            if issue.category is Category.SPELLING and request.is_user_word(
                text[issue.start : issue.end]
            ):
                continue
            issues.append(issue)
        return AnalysisResult(
            tuple(self.normalize(issues)), elapsed_ms_since(started), self._version
        )

    def _to_issue(self, match: Any, text: str) -> Issue:
        offset = int(getattr(match, "offset", 0) or 0)
        length = int(getattr(match, "errorLength", 0) or 0)
        start, end = clamp_span(offset, offset + length, len(text))
        category = category_for(
            getattr(match, "ruleIssueType", None), getattr(match, "category", None)
        )
        return Issue(
            start=start,
            end=end,
            category=category,
            rule_id=getattr(match, "ruleId", None) or UNKNOWN_RULE,
            provider_name="LanguageTool",
            severity=_SEVERITIES[category],
            message=getattr(match, "message", "") or "",
            replacements=tuple(getattr(match, "replacements", None) or ()),
            metadata={
                "lt_category": getattr(match, "category", None),
                "issue_type": getattr(match, "ruleIssueType", None),
            },
        )


def get_provider(language: str | None = None, *, require: bool = False) -> LanguageToolProvider:
    """Return a :class:`LanguageToolProvider` instance."""

    return LanguageToolProvider(language, require=require)
