"""Public API for the ``statement_ingest`` package.

Three entry points cover the whole pipeline:

- :func:`detect_format`: which bank format, if any, an upload uses.
- :func:`parse_statement`: detection plus extraction into a
  :class:`~statement_ingest.models.ParseResult`.
- :func:`import_statement`: parse and persist with duplicate suppression.

Failures a user can act on (unknown layout, unreadable PDF) are reported in
the result with ``success=False``; programming and database errors propagate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ExtractionError, UnsupportedFormatError
from .extract import TextExtractor
from .logging_setup import get_logger
from .models import (
    AccountDescriptor,
    AccountOut,
    Detection,
    Extraction,
    ImportResult,
    ParseResult,
    RawInput,
    TransactionOut,
    Unsupported,
)
from .parsers.base import StatementFormat
from .registry import detect, format_for

if TYPE_CHECKING:
    from .persistence import LabelSealer

# DB and persistence imports are local to ``import_statement`` so parsing never
# loads SQLAlchemy models or needs a configured database.

_logger = get_logger(__name__)


def detect_format(
    raw: RawInput, *, extractor: TextExtractor | None = None, strict: bool = False
) -> Detection:
    """Return the :class:`FormatMatch` claiming ``raw`` or :class:`Unsupported`.

    Raises
    ------
    ExtractionError
        When a document's text cannot be extracted.
    UnsupportedFormatError
        With ``strict=True``, instead of returning :class:`Unsupported`.
    """

    detection = detect(raw, extractor=extractor)
    if strict and isinstance(detection, Unsupported):
        raise UnsupportedFormatError(detection.reason, preview=detection.preview)
    return detection


def _extract(
    fmt: StatementFormat, text: str, account_filter: str | None
) -> tuple[list[AccountDescriptor], Extraction]:
    accounts = fmt.extract_accounts(text)
    if account_filter is not None:
        accounts = [a for a in accounts if a.number == account_filter]
    return accounts, fmt.extract_transactions(text, account_filter)


def parse_statement(
    raw: RawInput,
    *,
    extractor: TextExtractor | None = None,
    account_filter: str | None = None,
) -> ParseResult:
    """Detect the format of ``raw`` and extract its accounts and transactions.

    Input
    -----
    raw:
        Uploaded bytes and their declared kind.
    extractor:
        Optional replacement for the PDF text extractor.
    account_filter:
        When set, only that account and its transactions are returned.

    Output
    ------
    A :class:`ParseResult`. ``success`` is False for unsupported layouts
    (with ``preview``) and unreadable documents; in both cases no partial
    transactions are returned.
    """

    try:
        detection = detect(raw, extractor=extractor)
    except ExtractionError as exc:
        _logger.warning("parse:extraction_failed error=%s", exc)
        return ParseResult(success=False, error=str(exc))

    if isinstance(detection, Unsupported):
        return ParseResult(success=False, error=detection.reason, preview=detection.preview)

    fmt = format_for(detection)
    accounts, extraction = _extract(fmt, detection.text, account_filter)
    _logger.info(
        "parse:done bank=%s accounts=%d transactions=%d skipped=%d",
        fmt.bank_id,
        len(accounts),
        len(extraction.transactions),
        extraction.skipped,
    )
    return ParseResult(
        success=True,
        bank_id=fmt.bank_id,
        bank_display_name=fmt.display_name,
        encoding=detection.encoding,
        accounts=[AccountOut.from_descriptor(a) for a in accounts],
        transactions=[TransactionOut.from_canonical(t) for t in extraction.transactions],
        skipped_records=extraction.skipped,
    )


def import_statement(
    raw: RawInput,
    *,
    owner_id: str,
    database_url: str | None = None,
    extractor: TextExtractor | None = None,
    account_filter: str | None = None,
    sealer: LabelSealer | None = None,
) -> ImportResult:
    """Parse ``raw`` and persist it for ``owner_id`` in one database transaction.

    Input
    -----
    owner_id:
        Identifier of the user the accounts belong to.
    database_url:
        SQLAlchemy URL; falls back to ``DATABASE_URL``.

    Output
    ------
    An :class:`ImportResult` with inserted and duplicate counts. Re-importing
    the same statement inserts nothing and reports every transaction as a
    duplicate.

    Notes
    -----
    Database errors roll the whole import back and propagate.
    """

    from ingest_db.client import session_scope

    from .persistence import reconcile

    try:
        detection = detect(raw, extractor=extractor)
    except ExtractionError as exc:
        _logger.warning("import:extraction_failed error=%s", exc)
        return ImportResult(success=False, error=str(exc))
    if isinstance(detection, Unsupported):
        return ImportResult(success=False, error=detection.reason)

    fmt = format_for(detection)
    accounts, extraction = _extract(fmt, detection.text, account_filter)

    with session_scope(database_url=database_url) as session:
        outcome = reconcile(
            session,
            accounts=accounts,
            transactions=extraction.transactions,
            owner_id=owner_id,
            bank_id=fmt.bank_id,
            sealer=sealer,
        )

    return ImportResult(
        success=True,
        bank_id=fmt.bank_id,
        inserted=outcome.inserted_count,
        duplicates=outcome.duplicate_count,
        account_id=outcome.account_id,
        account_ids=outcome.account_ids,
        skipped_records=extraction.skipped,
    )


__all__ = ["detect_format", "import_statement", "parse_statement"]
