"""Utility functions for working with text spans.

The helpers in this module are pure and framework agnostic.  Spans are
represented as half‑open intervals ``[start, end)`` where ``start`` is inclusive
and ``end`` is exclusive.  Boundary touching spans therefore do not overlap,
and zero-length spans (``start == end``) are valid insertion points.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Literal

__all__ = [
    "build_line_starts",
    "char_to_line_col",
    "clamp_span",
    "span_in_bounds",
    "spans_overlap",
    "detect_text_case",
    "match_case",
]


def build_line_starts(text: str) -> tuple[int, ...]:
    """Return the starting character index for each line in ``text``."""

    starts = [0]
    for idx, char in enumerate(text):
        if char == "\n":
            starts.append(idx + 1)
    return tuple(starts)


def char_to_line_col(index: int, line_starts: tuple[int, ...]) -> tuple[int, int]:
    """Convert a character index to ``(line, col)`` using ``line_starts``.

    Line and column numbers are zero‑based.
    """

    if index < 0:
        raise ValueError("index must be non‑negative")
    line = bisect_right(line_starts, index) - 1
    if line < 0:
        line = 0
    col = index - line_starts[line]
    return line, col


def clamp_span(start: int, end: int, length: int) -> tuple[int, int]:
    """Clamp ``[start, end)`` into ``[0, length]`` keeping ``end >= start``."""

    lo = max(0, min(start, length))
    hi = max(lo, min(end, length))
    return lo, hi


def span_in_bounds(start: int, end: int, length: int) -> bool:
    """Return ``True`` if ``0 <= start <= end <= length``."""

    return 0 <= start <= end <= length


def spans_overlap(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Return ``True`` if span ``a`` overlaps span ``b``.

    Zero-length spans overlap a span that strictly contains their position.
    """

    if a[0] == a[1]:
        return b[0] < a[0] < b[1]
    if b[0] == b[1]:
        return a[0] < b[0] < a[1]
    return not (a[1] <= b[0] or b[1] <= a[0])


def detect_text_case(s: str) -> Literal["UPPER", "LOWER", "TITLE", "MIXED"]:
    """Detect the predominant case of ``s``."""

    if s.isupper():
        return "UPPER"
    if s.islower():
        return "LOWER"
    if s.istitle():
        return "TITLE"
    return "MIXED"


def match_case(source: str, replacement: str) -> str:
    """Return ``replacement`` with casing adapted from ``source``.

    Uniform ``UPPER``/``TITLE`` sources are mirrored; anything else leaves the
    replacement unchanged.
    """

    case = detect_text_case(source)
    if case == "UPPER" and len(source) > 1:
        return replacement.upper()
    if case in ("TITLE", "UPPER"):
        return replacement[:1].upper() + replacement[1:]
    return replacement
