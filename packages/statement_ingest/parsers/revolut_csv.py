"""Revolut account statement export (CSV, comma-delimited).

Columns, in French or English:
``Type,Produit,Date de début,Date de fin,Description,Montant,Frais,Devise,État,Solde``.

Amounts are signed in-column with a dot decimal, so no debit/credit column
inference is needed. Each ``Produit`` value (``Actuel``, ``Épargne``...) is an
account of its own.
"""

from __future__ import annotations

from decimal import Decimal

from ..categories import guess_basic
from ..logging_setup import get_logger
from ..models import AccountDescriptor, AccountKind, CanonicalTransaction, Extraction, InputKind
from ..normalizers import parse_amount, parse_iso_datetime_date
from ..tokenizer import join_quoted_lines, tokenize_record
from .base import StatementFormat

_logger = get_logger(__name__)

BANK_ID = "revolut"
DISPLAY_NAME = "Revolut"

_DELIMITER = ","
_MIN_FIELDS = 10
_MIN_HEADER_HITS = 6

# Each concept is satisfied by any of its spellings.
_HEADER_CONCEPTS: tuple[tuple[str, ...], ...] = (
    ("type",),
    ("produit", "product"),
    ("description",),
    ("montant", "amount"),
    ("devise", "currency"),
    ("solde", "balance"),
    ("date",),
    ("état", "etat", "state"),
)

_COMPLETED = frozenset({"TERMINÉ", "TERMINE", "COMPLETED"})
_CONVERSION_TYPES = frozenset({"Changes", "Exchange", "EXCHANGE"})

_TYPE_PREFIXES = {
    "Paiement par carte": "Achat: ",
    "Card Payment": "Achat: ",
    "CARD_PAYMENT": "Achat: ",
    "Ajout de fonds": "Virement reçu: ",
    "Topup": "Virement reçu: ",
    "TOPUP": "Virement reçu: ",
    "Virement": "Virement: ",
    "Transfer": "Virement: ",
    "TRANSFER": "Virement: ",
    "Remboursement sur carte": "Remboursement: ",
    "Card Refund": "Remboursement: ",
    "CARD_REFUND": "Remboursement: ",
}


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line
    return ""


def detect(text: str) -> bool:
    header = _first_line(text).lower()
    hits = sum(1 for spellings in _HEADER_CONCEPTS if any(s in header for s in spellings))
    return hits >= _MIN_HEADER_HITS


def _rows(text: str) -> list[list[str]]:
    records = list(join_quoted_lines(text.splitlines()))
    # First logical record is the header.
    return [tokenize_record(r, delimiter=_DELIMITER) for r in records[1:]]


def extract_accounts(text: str) -> list[AccountDescriptor]:
    seen: dict[str, AccountDescriptor] = {}
    for fields in _rows(text):
        if len(fields) < 2 or not fields[1]:
            continue
        product = fields[1]
        if product not in seen:
            savings = product.lower() in ("épargne", "epargne", "savings")
            kind = AccountKind.SAVINGS if savings else AccountKind.CHECKING
            seen[product] = AccountDescriptor(
                number=product,
                display_label=f"Revolut {product}",
                kind=kind,
            )
    return list(seen.values())


def _label(kind: str, description: str) -> str:
    return f"{_TYPE_PREFIXES.get(kind, '')}{description}"


def extract_transactions(text: str, account_filter: str | None = None) -> Extraction:
    out: list[CanonicalTransaction] = []
    skipped = 0
    for fields in _rows(text):
        if len(fields) < _MIN_FIELDS:
            skipped += 1
            continue
        kind, product, _started, completed, description, amount_s, _fees, _ccy, state = fields[:9]
        if account_filter is not None and product != account_filter:
            continue
        # Pending, reverted and declined rows never settled.
        if state.upper() not in _COMPLETED:
            continue
        if kind in _CONVERSION_TYPES:
            continue
        try:
            amount = parse_amount(amount_s, decimal_sep=".")
            when = parse_iso_datetime_date(completed)
        except ValueError as exc:
            _logger.debug("revolut:skip reason=%s", exc)
            skipped += 1
            continue
        if amount == Decimal("0.00"):
            continue
        label = _label(kind, description)
        out.append(
            CanonicalTransaction(
                date=when,
                label=label,
                amount=amount,
                category_guess=guess_basic(label),
                account_number=product,
            )
        )
    return Extraction(transactions=tuple(out), skipped=skipped)


FORMAT = StatementFormat(
    bank_id=BANK_ID,
    display_name=DISPLAY_NAME,
    kind=InputKind.TABULAR,
    detect=detect,
    extract_accounts=extract_accounts,
    extract_transactions=extract_transactions,
)

__all__ = ["FORMAT", "detect", "extract_accounts", "extract_transactions"]
