"""Logging utilities.

Modules obtain loggers through :func:`get_logger` so that every logger lives
under the ``quillcheck`` namespace.  :func:`configure_logging` installs a
single :class:`rich.logging.RichHandler` writing to stderr on that namespace;
calling it again only adjusts the level.  Library code never configures
handlers itself.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "quillcheck"

__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger", "parse_level"]


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name`` under the package namespace."""

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def parse_level(level: int | str) -> int:
    """Return a numeric logging level for ``level``.

    Strings are matched case-insensitively against the standard level names.
    """

    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def configure_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a Rich handler to the package logger and set ``level``."""

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(parse_level(level))
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True), rich_tracebacks=True, show_path=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
