"""Quillcheck: fault-tolerant writing suggestions.

Several independent providers (typo tables, heuristic rules, LanguageTool)
analyse the same text concurrently.  :class:`CompositeProvider` merges their
findings into one :class:`AnalysisResult` and isolates provider failures, and
:class:`DebouncedAnalyzer` throttles re-analysis while the text is being
edited.  The command line interface lives in :mod:`quillcheck.cli`.
"""

from .schedule import DebouncedAnalyzer
from .suggest import (
    AnalysisRequest,
    AnalysisResult,
    Category,
    CompositeProvider,
    Issue,
    NullProvider,
    Scope,
    Severity,
    SuggestionProvider,
)
from .utils.errors import ProviderError, SpanOutOfBoundsError

__version__ = "0.1.0"

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "Category",
    "CompositeProvider",
    "DebouncedAnalyzer",
    "Issue",
    "NullProvider",
    "ProviderError",
    "Scope",
    "Severity",
    "SpanOutOfBoundsError",
    "SuggestionProvider",
    "__version__",
]
