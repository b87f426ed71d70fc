"""Exceptions raised by the ingestion pipeline.

Malformed individual records are never exceptions: parsers skip and tally
them. Exceptions are reserved for whole-document failures.
"""

from __future__ import annotations

_PREVIEW_CHARS = 200


class StatementIngestError(Exception):
    """Base class for ingestion failures."""


class UnsupportedFormatError(StatementIngestError):
    """No registered statement format claimed the input.

    ``preview`` holds the leading characters of the decoded text so the caller
    can show the user what was received.
    """

    def __init__(self, message: str, *, preview: str | None = None) -> None:
        self.preview = (preview or "")[:_PREVIEW_CHARS]
        super().__init__(message)


class ExtractionError(StatementIngestError):
    """The page-document text extractor could not read the input."""


__all__ = [
    "ExtractionError",
    "StatementIngestError",
    "UnsupportedFormatError",
]
