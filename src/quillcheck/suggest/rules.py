"""Offline rule-based checker.

:class:`RuleBasedProvider` runs a handful of cheap heuristics over the text:

* ``UNKNOWN_WORD``: words missing from the loaded dictionary.  Only active
  when a dictionary was supplied; single letters are ignored.
* ``REPEATED_WORD``: the same word twice in a row (``"the the"``).
* ``MULTIPLE_SPACES``: runs of two or more spaces.
* ``LONG_SENTENCE``: sentences longer than ``long_sentence_words`` words,
  including a trailing fragment without terminal punctuation.
* ``PASSIVE_VOICE``: a form of *to be* followed by an ``-ed`` word.

Each rule honours ``request.disabled_rule_ids`` and the request's category
filter.  Results are reported rule by rule, each rule in text order.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from time import perf_counter

from quillcheck.utils.constants import SENTENCE_END_RX, WORD_RX, count_words
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

__all__ = ["RULES", "RuleBasedProvider", "load_word_list", "get_provider"]

UNKNOWN_WORD = "UNKNOWN_WORD"
REPEATED_WORD = "REPEATED_WORD"
MULTIPLE_SPACES = "MULTIPLE_SPACES"
LONG_SENTENCE = "LONG_SENTENCE"
PASSIVE_VOICE = "PASSIVE_VOICE"

RULES: dict[str, Category] = {
    UNKNOWN_WORD: Category.SPELLING,
    REPEATED_WORD: Category.GRAMMAR,
    MULTIPLE_SPACES: Category.PUNCTUATION,
    LONG_SENTENCE: Category.STYLE,
    PASSIVE_VOICE: Category.STYLE,
}

MULTI_SPACE_RX = re.compile(r" {2,}")
PASSIVE_RX = re.compile(
    r"\b(?:am|is|are|was|were|be|been|being)\s+[^\W\d_]+ed\b", re.IGNORECASE
)

_VERSION = "rules/1.0"


def load_word_list(path: str | os.PathLike[str]) -> frozenset[str]:
    """Read a newline separated word list, lowercased.

    Blank lines and lines starting with ``#`` are skipped.
    """

    words: set[str] = set()
    with Path(path).open("r", encoding="utf-8") as fh:
        for line in fh:
            word = line.strip().lower()
            if word and not word.startswith("#"):
                words.add(word)
    return frozenset(words)


class RuleBasedProvider(SuggestionProvider):
    """Heuristic spelling, repetition, spacing and style checks."""

    def __init__(
        self,
        dictionary: Iterable[str] | None = None,
        *,
        long_sentence_words: int = 35,
        passive_voice: bool = True,
    ) -> None:
        if long_sentence_words <= 0:
            raise ValueError("long_sentence_words must be > 0")
        self._dictionary = frozenset(w.lower() for w in dictionary) if dictionary else frozenset()
        self._long_sentence_words = long_sentence_words
        self._passive_voice = passive_voice

    @classmethod
    def from_word_list(cls, path: str | os.PathLike[str], **kwargs: object) -> "RuleBasedProvider":
        """Build a provider whose dictionary is read from ``path``."""

        return cls(load_word_list(path), **kwargs)  # type: ignore[arg-type]

    def name(self) -> str:
        return "rules"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        request = require_request(request)
        started = perf_counter()
        issues = list(self._run_rules(request))
        return AnalysisResult(tuple(self.normalize(issues)), elapsed_ms_since(started), _VERSION)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------
    def _active(self, rule_id: str, request: AnalysisRequest) -> bool:
        return request.rule_enabled(rule_id) and request.category_enabled(RULES[rule_id])

    def _run_rules(self, request: AnalysisRequest) -> Iterator[Issue]:
        text = request.text
        tokens = [(m.start(), m.end(), m.group(0)) for m in WORD_RX.finditer(text)]

        if self._dictionary and self._active(UNKNOWN_WORD, request):
            yield from self._unknown_words(tokens, request)
        if self._active(REPEATED_WORD, request):
            yield from self._repeated_words(text, tokens)
        if self._active(MULTIPLE_SPACES, request):
            yield from self._multiple_spaces(text)
        if self._active(LONG_SENTENCE, request):
            yield from self._long_sentences(text)
        if self._passive_voice and self._active(PASSIVE_VOICE, request):
            yield from self._passive(text)

    def _issue(
        self,
        rule_id: str,
        start: int,
        end: int,
        severity: Severity,
        message: str,
        *replacements: str,
    ) -> Issue:
        return Issue(
            start=start,
            end=end,
            category=RULES[rule_id],
            rule_id=rule_id,
            provider_name=self.name(),
            severity=severity,
            message=message,
            replacements=replacements,
        )

    def _unknown_words(
        self, tokens: list[tuple[int, int, str]], request: AnalysisRequest
    ) -> Iterator[Issue]:
        for start, end, word in tokens:
            lowered = word.lower()
            if len(lowered) == 1 or lowered in self._dictionary:
                continue
            if request.is_user_word(word):
                continue
            yield self._issue(UNKNOWN_WORD, start, end, Severity.ERROR, f"Unknown word: {word}")

    def _repeated_words(self, text: str, tokens: list[tuple[int, int, str]]) -> Iterator[Issue]:
        for (p_start, p_end, prev), (c_start, c_end, cur) in zip(tokens, tokens[1:]):
            if prev.lower() != cur.lower():
                continue
            # only whitespace may separate the pair
            if text[p_end:c_start].strip():
                continue
            yield self._issue(
                REPEATED_WORD, p_start, c_end, Severity.WARNING, f'Repeated word: "{cur}"', prev
            )

    def _multiple_spaces(self, text: str) -> Iterator[Issue]:
        for match in MULTI_SPACE_RX.finditer(text):
            yield self._issue(
                MULTIPLE_SPACES, match.start(), match.end(), Severity.WARNING, "Multiple spaces", " "
            )

    def _long_sentences(self, text: str) -> Iterator[Issue]:
        limit = self._long_sentence_words
        last = 0
        bounds: list[tuple[int, int]] = []
        for match in SENTENCE_END_RX.finditer(text):
            bounds.append((last, match.end()))
            last = match.end()
        if last < len(text):
            bounds.append((last, len(text)))
        for start, end in bounds:
            words = count_words(text[start:end])
            if words > limit:
                yield self._issue(
                    LONG_SENTENCE, start, end, Severity.WARNING, f"Long sentence ({words} words)"
                )

    def _passive(self, text: str) -> Iterator[Issue]:
        for match in PASSIVE_RX.finditer(text):
            yield self._issue(
                PASSIVE_VOICE, match.start(), match.end(), Severity.INFO, "Possible passive voice"
            )


def get_provider(
    dictionary_path: str | os.PathLike[str] | None = None,
    *,
    long_sentence_words: int = 35,
    passive_voice: bool = True,
) -> RuleBasedProvider:
    """Return a :class:`RuleBasedProvider`, loading ``dictionary_path`` when given."""

    dictionary = load_word_list(dictionary_path) if dictionary_path is not None else None
    return RuleBasedProvider(
        dictionary, long_sentence_words=long_sentence_words, passive_voice=passive_voice
    )
