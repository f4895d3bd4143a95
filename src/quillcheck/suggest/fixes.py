"""Apply, de-duplicate and group reported issues.

The aggregator deliberately returns a plain concatenation of every
provider's findings.  These helpers give display and export layers the
canonical views they need without touching the core result types.
"""

from __future__ import annotations

from collections.abc import Iterable

from quillcheck.utils.textspan import span_in_bounds, spans_overlap

from .base import Category, Issue

__all__ = ["apply_replacement", "apply_all", "dedupe_issues", "group_by_category"]


def apply_replacement(text: str, issue: Issue, index: int = 0) -> str:
    """Return ``text`` with ``issue``'s span replaced by candidate ``index``.

    ``text`` is returned unchanged when the index is out of range or the span
    does not fit the text.
    """

    if not 0 <= index < len(issue.replacements):
        return text
    if not span_in_bounds(issue.start, issue.end, len(text)):
        return text
    return text[: issue.start] + issue.replacements[index] + text[issue.end :]


def apply_all(text: str, issues: Iterable[Issue]) -> str:
    """Apply the first candidate of every issue, right to left.

    Issues without candidates are skipped, as are issues overlapping a span
    that was already replaced.  Applying right to left keeps the offsets of
    the remaining issues valid.
    """

    candidates = [
        i for i in issues if i.replacements and span_in_bounds(i.start, i.end, len(text))
    ]
    candidates.sort(key=lambda i: (i.start, i.end), reverse=True)

    applied: list[tuple[int, int]] = []
    out = text
    for issue in candidates:
        span = (issue.start, issue.end)
        if any(spans_overlap(span, done) or span == done for done in applied):
            continue
        out = out[: issue.start] + issue.replacements[0] + out[issue.end :]
        applied.append(span)
    return out


def dedupe_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Return the first issue for each :meth:`Issue.dedup_key`, order preserved."""

    seen: set[str] = set()
    unique: list[Issue] = []
    for issue in issues:
        key = issue.dedup_key()
        if key not in seen:
            seen.add(key)
            unique.append(issue)
    return unique


def group_by_category(issues: Iterable[Issue]) -> dict[Category, list[Issue]]:
    """Group ``issues`` by category, keeping their relative order."""

    grouped: dict[Category, list[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.category, []).append(issue)
    return grouped
