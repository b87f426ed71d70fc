"""Public interface for the ``statement_ingest`` package.

Re-exports the API functions and the public models. There is no runtime logic
here.
"""

from .api import detect_format, import_statement, parse_statement
from .errors import ExtractionError, StatementIngestError, UnsupportedFormatError
from .models import (
    AccountDescriptor,
    AccountKind,
    CanonicalTransaction,
    FormatMatch,
    ImportResult,
    InputKind,
    ParseResult,
    RawInput,
    Unsupported,
)

__all__ = [
    "AccountDescriptor",
    "AccountKind",
    "CanonicalTransaction",
    "ExtractionError",
    "FormatMatch",
    "ImportResult",
    "InputKind",
    "ParseResult",
    "RawInput",
    "StatementIngestError",
    "Unsupported",
    "UnsupportedFormatError",
    "detect_format",
    "import_statement",
    "parse_statement",
]
