"""Format detection: which registered format, if any, claims an input.

Tabular inputs are decoded in up to two passes. The first pass decodes
strictly as UTF-8; if that fails, or no format claims the text, the bytes are
re-decoded as ISO-8859-1 (the usual encoding of French bank exports) and
detection runs once more. Document inputs go through the text extractor once.

Detection is pure dispatch: it never parses transactions and has no side
effects besides logging.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import ExtractionError
from .extract import TextExtractor, extract_pdf_text
from .logging_setup import get_logger
from .models import Detection, FormatMatch, InputKind, RawInput, Unsupported
from .parsers import DOCUMENT_FORMATS, TABULAR_FORMATS, StatementFormat

_logger = get_logger(__name__)

PREVIEW_CHARS = 200
TABULAR_ENCODINGS: tuple[str, ...] = ("utf-8", "iso-8859-1")
DOCUMENT_ENCODING = "pdf-text"


def formats_for(kind: InputKind) -> Sequence[StatementFormat]:
    return TABULAR_FORMATS if kind is InputKind.TABULAR else DOCUMENT_FORMATS


def format_for(match: FormatMatch) -> StatementFormat:
    """Return the registered format that produced ``match``."""

    for fmt in formats_for(match.kind):
        if fmt.bank_id == match.bank_id:
            return fmt
    raise KeyError(f"no {match.kind} format registered for {match.bank_id!r}")


def _decode(data: bytes, encoding: str) -> str | None:
    # utf-8-sig also strips a leading byte-order mark.
    codec = "utf-8-sig" if encoding == "utf-8" else encoding
    try:
        return data.decode(codec)
    except UnicodeDecodeError:
        return None


def _claim(formats: Sequence[StatementFormat], text: str) -> StatementFormat | None:
    for fmt in formats:
        if fmt.detect(text):
            return fmt
    return None


def _detect_tabular(raw: RawInput) -> Detection:
    last_text = ""
    for encoding in TABULAR_ENCODINGS:
        text = _decode(raw.data, encoding)
        if text is None:
            _logger.debug("detect:decode_failed encoding=%s", encoding)
            continue
        last_text = text
        fmt = _claim(TABULAR_FORMATS, text)
        if fmt is not None:
            _logger.info("detect:matched bank=%s encoding=%s", fmt.bank_id, encoding)
            return FormatMatch(
                bank_id=fmt.bank_id,
                display_name=fmt.display_name,
                kind=InputKind.TABULAR,
                encoding=encoding,
                text=text,
            )
    _logger.info("detect:unsupported kind=tabular bytes=%d", len(raw.data))
    return Unsupported(
        kind=InputKind.TABULAR,
        preview=last_text[:PREVIEW_CHARS],
        reason="no supported bank export format recognized",
    )


def _detect_document(raw: RawInput, extractor: TextExtractor) -> Detection:
    try:
        text = extractor(raw.data)
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(f"text extraction failed: {exc}") from exc
    fmt = _claim(DOCUMENT_FORMATS, text)
    if fmt is None:
        _logger.info("detect:unsupported kind=document chars=%d", len(text))
        supported = ", ".join(f.display_name for f in DOCUMENT_FORMATS)
        return Unsupported(
            kind=InputKind.DOCUMENT,
            preview=text[:PREVIEW_CHARS],
            reason=f"unrecognized PDF statement; supported banks: {supported}",
        )
    _logger.info("detect:matched bank=%s encoding=%s", fmt.bank_id, DOCUMENT_ENCODING)
    return FormatMatch(
        bank_id=fmt.bank_id,
        display_name=fmt.display_name,
        kind=InputKind.DOCUMENT,
        encoding=DOCUMENT_ENCODING,
        text=text,
    )


def detect(raw: RawInput, *, extractor: TextExtractor | None = None) -> Detection:
    """Return the claiming format for ``raw`` or ``Unsupported``.

    Parameters
    ----------
    raw:
        The uploaded bytes and their declared kind.
    extractor:
        Text extractor for document inputs; defaults to
        :func:`~statement_ingest.extract.extract_pdf_text`. Ignored for
        tabular inputs.

    Raises
    ------
    ExtractionError
        When a document's text cannot be extracted.
    """

    if raw.kind is InputKind.TABULAR:
        return _detect_tabular(raw)
    return _detect_document(raw, extractor or extract_pdf_text)


__all__ = [
    "DOCUMENT_ENCODING",
    "PREVIEW_CHARS",
    "TABULAR_ENCODINGS",
    "detect",
    "format_for",
    "formats_for",
]
