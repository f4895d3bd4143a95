"""Provider that never reports anything.

Used as a harmless stand-in for offline mode, UI wiring and tests.
"""

from __future__ import annotations

from .base import AnalysisRequest, AnalysisResult, SuggestionProvider, require_request

__all__ = ["NullProvider", "get_provider"]


class NullProvider(SuggestionProvider):
    """Always return :meth:`AnalysisResult.empty`."""

    def name(self) -> str:
        return "null"

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        require_request(request)
        return AnalysisResult.empty()


def get_provider() -> NullProvider:
    """Return a :class:`NullProvider` instance."""

    return NullProvider()
