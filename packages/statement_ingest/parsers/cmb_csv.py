"""Crédit Mutuel de Bretagne account export (CSV, semicolon-delimited).

Header: ``"Date operation";"Date valeur";"Libelle";"Debit";"Credit"``.
The export carries no account identification, so every row is attached to a
single placeholder account.
"""

from __future__ import annotations

import re

from ..categories import guess_cmb
from ..logging_setup import get_logger
from ..models import AccountDescriptor, AccountKind, CanonicalTransaction, Extraction, InputKind
from ..normalizers import credit, debit, parse_dmy, parse_optional_amount
from ..tokenizer import collapse_whitespace, join_quoted_lines, tokenize_record
from .base import StatementFormat

_logger = get_logger(__name__)

BANK_ID = "credit_mutuel_bretagne"
DISPLAY_NAME = "Crédit Mutuel de Bretagne"

ACCOUNT_NUMBER = "CMB_CSV_IMPORT"
_ACCOUNT = AccountDescriptor(
    number=ACCOUNT_NUMBER,
    display_label="Compte Chèques CMB",
    kind=AccountKind.CHECKING,
    masked_number="***CMB",
)

_MIN_FIELDS = 5
_MAX_LABEL = 50
_MAX_MERCHANT = 40
_MAX_PARTY = 25

_CARD = re.compile(r"^CARTE\s+\d{2}/\d{2}\s+(.+)", re.IGNORECASE)
_POSTAL_TAIL = re.compile(r"\s+\d{5,}.*$")
_COUNTRY_TAIL = re.compile(r"\s+[A-Z]{2}$")
_VIR_INST_TO = re.compile(r"^VIR\s+INST\s+vers\s+(.+)", re.IGNORECASE)
_WERO = re.compile(r"^VIR\s+INST\s+WERO\s+(?:WERO\s+)?(.+)", re.IGNORECASE)
_VIR_FROM = re.compile(r"^VIR\s+de\s+([^/]+)", re.IGNORECASE)
_VIR_TO_SAVINGS = re.compile(r"^VIR\s+vers\s+LIVRET", re.IGNORECASE)
_DIRECT_DEBIT = re.compile(r"^PRLV\s+(.+)", re.IGNORECASE)
_FEE = re.compile(r"^F\s+COTISATION", re.IGNORECASE)


def detect(text: str) -> bool:
    return (
        '"Date operation"' in text
        and '"Libelle"' in text
        and ('"Debit"' in text or '"Credit"' in text)
    )


def extract_accounts(text: str) -> list[AccountDescriptor]:
    return [_ACCOUNT]


def _truncate(s: str, limit: int) -> str:
    return s if len(s) <= limit else s[: limit - 3] + "..."


def simplify_label(raw: str) -> str:
    """Shorten bank jargon into a readable label (``CB: MERCHANT`` and so on)."""

    label = collapse_whitespace(raw)
    if not label:
        return "Transaction"

    if m := _CARD.match(label):
        merchant = _POSTAL_TAIL.sub("", m.group(1).strip())
        merchant = _COUNTRY_TAIL.sub("", merchant)
        return "CB: " + _truncate(merchant, _MAX_MERCHANT)
    if m := _VIR_INST_TO.match(label):
        return "Virement vers: " + m.group(1).strip()[:_MAX_PARTY]
    if m := _WERO.match(label):
        return "Wero vers: " + m.group(1).strip()[:_MAX_PARTY]
    if m := _VIR_FROM.match(label):
        source = m.group(1).strip()
        if "LIVRET" in source:
            return "Virement depuis: Livret"
        return "Virement reçu: " + source[:_MAX_PARTY]
    if _VIR_TO_SAVINGS.match(label):
        return "Virement vers: Livret"
    if m := _DIRECT_DEBIT.match(label):
        return "Prélèvement: " + m.group(1).strip()[:_MAX_PARTY]
    if _FEE.match(label):
        return "Frais bancaires CMB"
    if "CAF" in label:
        return "CAF"
    if "DRFIP" in label:
        return "DRFIP (Prime/Impôts)"
    if "TRESORERIE" in label and "CHR" in label:
        return "Salaire CHU/Hôpital"
    return _truncate(label, _MAX_LABEL)


def _records(text: str) -> list[str]:
    records = list(join_quoted_lines(text.splitlines()))
    return records[1:]


def extract_transactions(text: str, account_filter: str | None = None) -> Extraction:
    if account_filter is not None and account_filter != ACCOUNT_NUMBER:
        return Extraction(transactions=())

    out: list[CanonicalTransaction] = []
    skipped = 0
    for record in _records(text):
        fields = tokenize_record(record, delimiter=";")
        if len(fields) < _MIN_FIELDS:
            skipped += 1
            continue
        date_s, _value_date, raw_label, debit_s, credit_s = fields[:5]
        try:
            when = parse_dmy(date_s)
            out_amt = parse_optional_amount(debit_s)
            in_amt = parse_optional_amount(credit_s)
        except ValueError as exc:
            _logger.debug("cmb_csv:skip reason=%s", exc)
            skipped += 1
            continue
        # A populated credit wins; rows with neither side are balance notices.
        if in_amt:
            amount = credit(in_amt)
        elif out_amt:
            amount = debit(out_amt)
        else:
            continue
        label = simplify_label(raw_label)
        out.append(
            CanonicalTransaction(
                date=when,
                label=label,
                amount=amount,
                category_guess=guess_cmb(label),
                account_number=ACCOUNT_NUMBER,
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

__all__ = [
    "ACCOUNT_NUMBER",
    "FORMAT",
    "detect",
    "extract_accounts",
    "extract_transactions",
    "simplify_label",
]
