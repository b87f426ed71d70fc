"""Data models for ``statement_ingest``.

Two families live here:

- Frozen ``dataclass`` records that flow between pipeline stages
  (``RawInput`` → ``FormatMatch`` → ``CanonicalTransaction``). These are
  internal, immutable, and carry real ``date``/``Decimal`` values.
- The ``ParseResult`` pydantic model, the outward-facing JSON shape handed to
  callers (camelCase aliases, amounts serialized as 2-dp strings).
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Pipeline records
# ---------------------------------------------------------------------------


class InputKind(StrEnum):
    TABULAR = "tabular"
    DOCUMENT = "document"


class AccountKind(StrEnum):
    CHECKING = "checking"
    SAVINGS = "savings"
    YOUTH_SAVINGS = "youth_savings"
    CARD = "card"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RawInput:
    """Uploaded bytes plus the caller-declared kind (from filename/MIME)."""

    data: bytes
    kind: InputKind


@dataclass(frozen=True, slots=True)
class FormatMatch:
    """Outcome of a successful detection.

    ``encoding`` records which decoding pass succeeded (``"utf-8"``,
    ``"iso-8859-1"``) or ``"pdf-text"`` for documents; ``text`` is the decoded
    content the claiming format will parse.
    """

    bank_id: str
    display_name: str
    kind: InputKind
    encoding: str
    text: str


@dataclass(frozen=True, slots=True)
class Unsupported:
    """No registered format claimed the input."""

    kind: InputKind
    preview: str
    reason: str


type Detection = FormatMatch | Unsupported


@dataclass(frozen=True, slots=True)
class AccountDescriptor:
    number: str
    display_label: str
    kind: AccountKind = AccountKind.CHECKING
    masked_number: str | None = None
    known_balance: Decimal | None = None


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """A single normalized transaction.

    ``amount`` is signed: debits are negative, credits positive, always with
    two decimal places. ``category_guess`` is advisory and may be refined by a
    downstream collaborator.
    """

    date: date
    label: str
    amount: Decimal
    category_guess: str | None
    account_number: str


@dataclass(frozen=True, slots=True)
class Extraction:
    """Transactions recovered from one document plus the malformed-record tally."""

    transactions: tuple[CanonicalTransaction, ...]
    skipped: int = 0


# ---------------------------------------------------------------------------
# Outward-facing result
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AccountOut(_CamelModel):
    number: str
    display_label: str
    kind: AccountKind
    masked_number: str | None = None
    known_balance: Decimal | None = None

    @field_serializer("known_balance")
    def _ser_balance(self, v: Decimal | None) -> str | None:
        return None if v is None else f"{v:.2f}"

    @classmethod
    def from_descriptor(cls, acc: AccountDescriptor) -> AccountOut:
        return cls(
            number=acc.number,
            display_label=acc.display_label,
            kind=acc.kind,
            masked_number=acc.masked_number,
            known_balance=acc.known_balance,
        )


class TransactionOut(_CamelModel):
    date: dt.date
    label: str
    amount: Decimal
    category_guess: str | None = None
    account_number: str

    @field_serializer("amount")
    def _ser_amount(self, v: Decimal) -> str:
        return f"{v:.2f}"

    @classmethod
    def from_canonical(cls, tx: CanonicalTransaction) -> TransactionOut:
        return cls(
            date=tx.date,
            label=tx.label,
            amount=tx.amount,
            category_guess=tx.category_guess,
            account_number=tx.account_number,
        )


class ParseResult(_CamelModel):
    """Result of ``parse_statement``; serialize with ``model_dump(by_alias=True)``."""

    success: bool
    bank_id: str | None = None
    bank_display_name: str | None = None
    encoding: str | None = None
    accounts: list[AccountOut] = Field(default_factory=list)
    transactions: list[TransactionOut] = Field(default_factory=list)
    skipped_records: int = 0
    error: str | None = None
    preview: str | None = None


class ImportResult(_CamelModel):
    """Result of ``import_statement``; ``account_ids`` maps account number to row id."""

    success: bool
    bank_id: str | None = None
    inserted: int = 0
    duplicates: int = 0
    account_id: int | None = None
    account_ids: dict[str, int] = Field(default_factory=dict)
    skipped_records: int = 0
    error: str | None = None


__all__ = [
    "AccountDescriptor",
    "AccountKind",
    "AccountOut",
    "CanonicalTransaction",
    "Detection",
    "Extraction",
    "FormatMatch",
    "ImportResult",
    "InputKind",
    "ParseResult",
    "RawInput",
    "TransactionOut",
    "Unsupported",
]
