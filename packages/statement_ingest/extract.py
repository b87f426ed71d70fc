"""Plain-text extraction for PDF statements.

Wraps ``pdfplumber``. The rest of the pipeline only ever sees a callable
``bytes -> str``, so tests and callers with their own extractor can pass one
in instead.
"""

from __future__ import annotations

import io
from collections.abc import Callable

import pdfplumber

from .errors import ExtractionError
from .logging_setup import get_logger

_logger = get_logger(__name__)

type TextExtractor = Callable[[bytes], str]


def extract_pdf_text(data: bytes) -> str:
    """Return the text of every page joined by newlines.

    Raises
    ------
    ExtractionError
        When the bytes are not a readable PDF.
    """

    if not data:
        raise ExtractionError("empty document")
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:
        # pdfplumber surfaces parser failures through several pdfminer types.
        raise ExtractionError(f"could not read PDF: {exc}") from exc
    text = "\n".join(pages)
    _logger.debug("extract:pdf pages=%d chars=%d", len(pages), len(text))
    return text


__all__ = ["TextExtractor", "extract_pdf_text"]
