"""Logging for the ``statement_ingest`` package.

Library modules call ``get_logger(__name__)`` and emit compact
``module:event key=value`` messages (``detect:matched bank=cmb encoding=utf-8``,
``reconcile:done inserted=5 duplicates=0``). They never attach handlers.

``configure_logging`` is for entrypoints. It installs one stream handler on
the ``statement_ingest`` logger, replacing any handler it installed before,
and keeps the PDF extraction stack (``pdfminer`` logs every content-stream
operator at DEBUG) at WARNING.

Level resolution, first match wins:

1. the explicit ``level`` argument;
2. ``STATEMENT_INGEST_LOG_LEVEL`` (a level name or number);
3. the CLI verbosity count: 0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_ingest"
LEVEL_ENV = "STATEMENT_INGEST_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_HANDLER_NAME = "statement_ingest.stream"
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)
_EXTRACTION_LOGGERS = ("pdfminer", "pdfplumber")


def _named_level(value: int | str) -> int | None:
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: int | str | None = None, *, verbosity: int = 0) -> int:
    """Return the effective level; an unknown level name falls through."""

    for candidate in (level, os.getenv(LEVEL_ENV)):
        if candidate is None or candidate == "":
            continue
        resolved = _named_level(candidate)
        if resolved is not None:
            return resolved
    index = min(max(verbosity, 0), len(_VERBOSITY_LEVELS) - 1)
    return _VERBOSITY_LEVELS[index]


def configure_logging(
    level: int | str | None = None,
    *,
    verbosity: int = 0,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send package logs to ``stream`` (``sys.stderr`` at call time).

    Safe to call repeatedly: the previous handler is swapped out, so a
    re-configured level never duplicates output.
    """

    resolved = resolve_level(level, verbosity=verbosity)
    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h.get_name() == _HANDLER_NAME:
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    for name in _EXTRACTION_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger; the package stays silent until configured."""

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV", "PACKAGE_LOGGER", "configure_logging", "get_logger", "resolve_level"]
