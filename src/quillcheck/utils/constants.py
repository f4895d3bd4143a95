"""Shared regular expressions and character tables for providers."""

from __future__ import annotations

import re

__all__ = [
    "DEFAULT_LANGUAGE",
    "UNKNOWN_RULE",
    "UNKNOWN_PROVIDER",
    "COMPOSITE_VERSION",
    "WORD_RX",
    "SENTENCE_END_RX",
    "count_words",
]

DEFAULT_LANGUAGE: str = "en-US"
UNKNOWN_RULE: str = "UNKNOWN_RULE"
UNKNOWN_PROVIDER: str = "unknown"
COMPOSITE_VERSION: str = "composite"

# Letters (any script) with inner apostrophes, e.g. "don't" or "o’clock".
WORD_RX: re.Pattern[str] = re.compile(r"[^\W\d_]+(?:['’][^\W\d_]+)*")

# Terminal punctuation followed by whitespace or end of text.
SENTENCE_END_RX: re.Pattern[str] = re.compile(r"[.!?]+(?:\s|$)")


def count_words(text: str) -> int:
    """Return the number of word tokens in ``text``."""

    if not text:
        return 0
    return sum(1 for _ in WORD_RX.finditer(text))
