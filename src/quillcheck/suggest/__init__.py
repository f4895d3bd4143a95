"""Suggestion providers and the fan-out aggregator.

Optional backends (LanguageTool) live in their own modules and are not
imported here.
"""

from .base import (
    AnalysisRequest,
    AnalysisResult,
    Category,
    Issue,
    Scope,
    Severity,
    SuggestionProvider,
)
from .composite import CompositeProvider
from .fixes import apply_all, apply_replacement, dedupe_issues, group_by_category
from .null import NullProvider
from .rules import RuleBasedProvider
from .typos import CommonTyposProvider

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "Category",
    "Issue",
    "Scope",
    "Severity",
    "SuggestionProvider",
    "CompositeProvider",
    "NullProvider",
    "RuleBasedProvider",
    "CommonTyposProvider",
    "apply_all",
    "apply_replacement",
    "dedupe_issues",
    "group_by_category",
]
