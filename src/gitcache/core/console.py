"""Console output and logging configuration.

Provides Rich-based logging setup:
    - stderr_console: Rich console for diagnostics
    - setup_logging(): Configure logging with Rich handler
    - get_logger(): Get a named logger instance
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "gitcache"

stderr_console = Console(stderr=True)


def _normalize_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_logging(level: str | int = logging.INFO, verbose: bool = False) -> logging.Logger:
    """Configure the package logger with a Rich handler and return it.

    Only the ``gitcache`` logger is touched; an embedding application keeps
    ownership of the root logger.
    """
    numeric_level = logging.DEBUG if verbose else _normalize_level(level)

    handler = RichHandler(
        console=stderr_console,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(numeric_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(numeric_level)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or LOGGER_NAME)
