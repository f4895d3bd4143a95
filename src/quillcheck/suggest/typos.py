"""Lookup-table provider for frequent English misspellings.

:class:`CommonTyposProvider` flags whole words found in a typo table and offers
the correction, mirroring the casing of the original word (``"Teh"`` becomes
``"The"``).  Matching is case-insensitive and anchored on word boundaries so
``"tehran"`` is left alone.  Words listed in the request's user dictionary are
never flagged.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from time import perf_counter

from quillcheck.utils.textspan import match_case
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

__all__ = ["COMMON_TYPOS", "CommonTyposProvider", "get_provider"]

COMMON_TYPOS: dict[str, str] = {
    "teh": "the",
    "maities": "mates",
    "adn": "and",
    "recieve": "receive",
    "recieved": "received",
    "seperate": "separate",
    "definately": "definitely",
    "occured": "occurred",
    "occurence": "occurrence",
    "untill": "until",
    "wich": "which",
    "becuase": "because",
    "beleive": "believe",
    "accomodate": "accommodate",
    "acheive": "achieve",
    "adress": "address",
    "arguement": "argument",
    "begining": "beginning",
    "calender": "calendar",
    "enviroment": "environment",
    "goverment": "government",
    "independant": "independent",
    "neccessary": "necessary",
    "noticable": "noticeable",
    "publically": "publicly",
    "tommorow": "tomorrow",
    "truely": "truly",
    "wierd": "weird",
}

_VERSION = "typos/1.0"


class CommonTyposProvider(SuggestionProvider):
    """Flag words from a misspelling table."""

    def __init__(self, typos: Mapping[str, str] | None = None, *, extra: Mapping[str, str] | None = None):
        table = dict(COMMON_TYPOS if typos is None else typos)
        table.update(extra or {})
        self._typos = {k.lower(): v for k, v in table.items() if k}
        self._rx: re.Pattern[str] | None = None
        if self._typos:
            alternatives = "|".join(
                re.escape(k) for k in sorted(self._typos, key=len, reverse=True)
            )
            self._rx = re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE)

    def name(self) -> str:
        return "typos"

    @property
    def typos(self) -> Mapping[str, str]:
        return dict(self._typos)

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        request = require_request(request)
        started = perf_counter()
        if self._rx is None or not request.category_enabled(Category.SPELLING):
            return AnalysisResult((), elapsed_ms_since(started), _VERSION)

        text = request.text
        issues: list[Issue] = []
        for match in self._rx.finditer(text):
            word = match.group(0)
            if request.is_user_word(word):
                continue
            rule_id = f"TYPO_{word.upper()}"
            if not request.rule_enabled(rule_id):
                continue
            fix = match_case(word, self._typos[word.lower()])
            issues.append(
                Issue(
                    start=match.start(),
                    end=match.end(),
                    category=Category.SPELLING,
                    rule_id=rule_id,
                    provider_name=self.name(),
                    severity=Severity.WARNING,
                    message=f"Did you mean “{fix}”?",
                    replacements=(fix,),
                    metadata={"word": word},
                )
            )
        return AnalysisResult(tuple(self.normalize(issues)), elapsed_ms_since(started), _VERSION)

    def normalize(self, issues: list[Issue]) -> list[Issue]:
        """Drop repeated ``dedup_key`` values keeping the first occurrence."""

        seen: set[str] = set()
        unique: list[Issue] = []
        for issue in issues:
            key = issue.dedup_key()
            if key in seen:
                continue
            seen.add(key)
            unique.append(issue)
        return unique


def get_provider(extra: Mapping[str, str] | None = None) -> CommonTyposProvider:
    """Return a :class:`CommonTyposProvider` with the built-in table."""

    return CommonTyposProvider(extra=extra)
