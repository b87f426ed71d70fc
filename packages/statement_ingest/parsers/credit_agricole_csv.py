"""Crédit Agricole multi-account export (CSV, semicolon-delimited).

One file holds several accounts. Each account block looks like::

    Compte de Dépôt carte n° 12345678901;
    Solde au 31/01/2024 1 234,56 €
    ...
    Date;Libellé;Débit euros;Crédit euros;
    01/02/2024;"PAIEMENT PAR CARTE X1234 APPLE.COM 31/01";5,99;
    ...

Labels are quoted and routinely span several physical lines, blank lines
included, so records are grouped by their leading ``DD/MM/YYYY;`` rather than
by line.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal

from ..categories import guess_basic
from ..logging_setup import get_logger
from ..models import AccountDescriptor, AccountKind, CanonicalTransaction, Extraction, InputKind
from ..normalizers import credit, debit, parse_amount, parse_dmy, parse_optional_amount
from ..tokenizer import (
    collapse_whitespace,
    group_dated_records,
    quote_open_after,
    tokenize_record,
)
from .base import StatementFormat

_logger = get_logger(__name__)

BANK_ID = "credit_agricole"
DISPLAY_NAME = "Crédit Agricole"

_DETECT_MARKERS = ("Crédit euros", "Débit euros", "bit euros", "carte n")

_ACCOUNT_MARKER = re.compile(r"carte\s*n[°º]?\s*(\d+)", re.IGNORECASE)
_COLUMN_HEADER = re.compile(r"Date;Libell|Date;.*bit.*euros", re.IGNORECASE)
_SECTION_END = re.compile(
    r"^M\.\s+|^Mme\s+|^CERCLE\s|Solde au|Liste des op", re.IGNORECASE
)
_RECORD_START = re.compile(r"^\d{2}/\d{2}/\d{4};")
_BALANCE = re.compile(
    r"Solde\s+au.*?(?<![\d/,.])(-?\d{1,3}(?:[ \u00a0.]\d{3})*[,.]\d{2})\s*(?:€|EUR)",
    re.IGNORECASE,
)
_BALANCE_LOOKAHEAD = 4

# Ordered: the first pattern found on the marker line names the account.
_ACCOUNT_KINDS: tuple[tuple[re.Pattern[str], AccountKind, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), kind, label)
    for pattern, kind, label in (
        (r"Compte de D[ée]p[oô]t", AccountKind.CHECKING, "Compte de Dépôt"),
        (r"Livret A(?!\w)", AccountKind.SAVINGS, "Livret A"),
        (r"Compte Sur Livret", AccountKind.SAVINGS, "Compte Sur Livret"),
        (r"Livret Jeune", AccountKind.YOUTH_SAVINGS, "Livret Jeune"),
    )
)

_MIN_FIELDS = 3
_MAX_LABEL = 50
_MAX_PARTY = 25
_MAX_CREDITOR = 20

_CARD_MERCHANT = re.compile(r"X\d+\s+(.+?)(?:\s+\d{2}/\d{2}|$)", re.IGNORECASE)
_TO_PARTY = re.compile(r"vers\s+(.+?)(?:\s{2,}|$)", re.IGNORECASE)
_FROM_PARTY = re.compile(r"de\s+(.+?)(?:\s{2,}|$)", re.IGNORECASE)
_CREDITOR = re.compile(r"PRELEVEMENT\s+(.+?)(?:\s{2,}|FR\d|$)", re.IGNORECASE)
_RATE = re.compile(r"TAUX\s+([\d,]+%)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class _Section:
    account_number: str
    lines: tuple[str, ...]


def detect(text: str) -> bool:
    return any(marker in text for marker in _DETECT_MARKERS)


def _account_kind(line: str) -> tuple[AccountKind, str]:
    for pattern, kind, label in _ACCOUNT_KINDS:
        if pattern.search(line):
            return kind, label
    return AccountKind.CHECKING, "Compte bancaire"


def _balance_after(lines: list[str], index: int) -> Decimal | None:
    for line in lines[index + 1 : index + 1 + _BALANCE_LOOKAHEAD]:
        m = _BALANCE.search(line)
        if m:
            try:
                return parse_amount(m.group(1))
            except ValueError:
                return None
    return None


def _quoted_state(text: str) -> Iterator[tuple[str, bool]]:
    """Yield ``(line, inside_quote)``, the flag being the state before the line.

    A line that opens a dated record always starts outside quotes, so one
    unbalanced label cannot swallow the rest of the file.
    """

    open_ = False
    for line in text.splitlines():
        if _RECORD_START.match(line):
            open_ = False
        yield line, open_
        open_ = quote_open_after(line, open_)


def extract_accounts(text: str) -> list[AccountDescriptor]:
    lines = text.splitlines()
    accounts: list[AccountDescriptor] = []
    for i, (line, inside_quote) in enumerate(_quoted_state(text)):
        m = None if inside_quote else _ACCOUNT_MARKER.search(line)
        if not m:
            continue
        number = m.group(1)
        kind, label = _account_kind(line)
        accounts.append(
            AccountDescriptor(
                number=number,
                display_label=label,
                kind=kind,
                masked_number="***" + number[-4:],
                known_balance=_balance_after(lines, i),
            )
        )
    return accounts


def _sections(text: str) -> Iterator[_Section]:
    number: str | None = None
    collected: list[str] = []
    in_table = False
    for line, inside_quote in _quoted_state(text):
        if inside_quote:
            if in_table and number is not None:
                collected.append(line)
            continue
        m = _ACCOUNT_MARKER.search(line)
        if m:
            if number is not None:
                yield _Section(number, tuple(collected))
            number, collected, in_table = m.group(1), [], False
            continue
        if _COLUMN_HEADER.search(line):
            in_table = True
            continue
        if in_table and _SECTION_END.search(line):
            in_table = False
            continue
        if in_table and number is not None:
            collected.append(line)
    if number is not None:
        yield _Section(number, tuple(collected))


def simplify_label(raw: str) -> str:
    label = collapse_whitespace(raw)
    upper = label.upper()

    if "PAIEMENT PAR CARTE" in upper:
        m = _CARD_MERCHANT.search(label)
        return "CB " + m.group(1).strip() if m else "Paiement carte"
    if "VIREMENT EMIS" in upper or "VIR INST VERS" in upper:
        m = _TO_PARTY.search(label)
        return "Virement vers " + m.group(1).strip()[:_MAX_PARTY] if m else "Virement émis"
    if "VIREMENT EN VOTRE FAVEUR" in upper or "VIR INST DE" in upper:
        m = _FROM_PARTY.search(label)
        return "Virement de " + m.group(1).strip()[:_MAX_PARTY] if m else "Virement reçu"
    if "PRELEVEMENT" in upper:
        m = _CREDITOR.search(label)
        return "Prélèvement " + m.group(1).strip()[:_MAX_CREDITOR] if m else "Prélèvement"
    if "INTERETS CREDITEURS" in upper:
        m = _RATE.search(label)
        return "Intérêts " + m.group(1) if m else "Intérêts créditeurs"
    if len(label) > _MAX_LABEL:
        return label[: _MAX_LABEL - 3] + "..."
    return label


def _parse_record(record: str, account_number: str) -> CanonicalTransaction | None:
    """Parse one grouped record; ``None`` means an administrative row.

    Raises ``ValueError`` for malformed records.
    """

    fields = tokenize_record(record, delimiter=";")
    if len(fields) < _MIN_FIELDS:
        raise ValueError(f"expected at least {_MIN_FIELDS} fields, got {len(fields)}")
    when = parse_dmy(fields[0])
    out_amt = parse_optional_amount(fields[2])
    in_amt = parse_optional_amount(fields[3]) if len(fields) > 3 else None
    if in_amt:
        amount = credit(in_amt)
    elif out_amt:
        amount = debit(out_amt)
    else:
        return None
    label = simplify_label(fields[1])
    return CanonicalTransaction(
        date=when,
        label=label,
        amount=amount,
        category_guess=guess_basic(label),
        account_number=account_number,
    )


def extract_transactions(text: str, account_filter: str | None = None) -> Extraction:
    out: list[CanonicalTransaction] = []
    skipped = 0
    for section in _sections(text):
        if account_filter is not None and section.account_number != account_filter:
            continue
        for record in group_dated_records(section.lines, _RECORD_START):
            try:
                tx = _parse_record(record, section.account_number)
            except ValueError as exc:
                _logger.debug(
                    "credit_agricole_csv:skip account=%s reason=%s", section.account_number, exc
                )
                skipped += 1
                continue
            if tx is not None:
                out.append(tx)
    return Extraction(transactions=tuple(out), skipped=skipped)


FORMAT = StatementFormat(
    bank_id=BANK_ID,
    display_name=DISPLAY_NAME,
    kind=InputKind.TABULAR,
    detect=detect,
    extract_accounts=extract_accounts,
    extract_transactions=extract_transactions,
)

__all__ = [
    "FORMAT",
    "detect",
    "extract_accounts",
    "extract_transactions",
    "simplify_label",
]
