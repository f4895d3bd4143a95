"""Debounced scheduling of analysis cycles."""

from .debounce import DEFAULT_DELAY_MS, DebouncedAnalyzer
from .timers import TimerService

__all__ = ["DEFAULT_DELAY_MS", "DebouncedAnalyzer", "TimerService"]
