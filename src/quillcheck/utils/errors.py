"""Typed exceptions for span validation, provider failures and configuration."""

from __future__ import annotations


class SpanError(ValueError):
    """Base class for span related errors."""


class SpanOutOfBoundsError(SpanError):
    """Raised when span coordinates are invalid or out of bounds."""


class ProviderError(Exception):
    """Raised when a single provider cannot complete an analysis.

    The error is recoverable: aggregating providers absorb it and continue
    with the remaining providers.  ``cause`` holds the lower level exception
    when the failure wraps one.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class ConfigError(ValueError):
    """Raised when configuration files cannot be read or parsed."""
