"""Crédit Agricole monthly statement (PDF).

Lines read ``DD.MM DD.MM LABEL AMOUNT`` with the amount in either the debit
or the credit column. Column position does not survive text extraction and
these statements print no section banners, so the sign comes from keyword
cues and from the glyphs the extractor leaves next to amounts.

Dates carry no year. It comes from the statement closing date
(``Date d'arrêté : 5 janvier 2024``), and December operations on a January
statement belong to the previous year.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from ..categories import guess_basic
from ..logging_setup import get_logger
from ..models import AccountDescriptor, AccountKind, CanonicalTransaction, Extraction, InputKind
from ..normalizers import parse_day_month, parse_french_month
from ..sections import LineEntry, LineGrammar, clean_label, run_lines
from .base import StatementFormat

_logger = get_logger(__name__)

BANK_ID = "credit_agricole"
DISPLAY_NAME = "Crédit Agricole"
FALLBACK_ACCOUNT = "CA_DEFAULT"
_IBAN_LENGTH = 27

_INDICATORS = (
    "credit agricole",
    "crédit agricole",
    "ca-illeetvilaine",
    "ca-bretagne",
    "agrifrpp",
    "caisse régionale de crédit agricole",
)

_IBAN = re.compile(r"IBAN\s*:\s*(FR\d{2}[\d \u00a0]+)", re.IGNORECASE)
_ACCOUNT_NO = re.compile(r"Compte\s*(?:Chèque|Cheque)?\s*n°?\s*(\d{10,})", re.IGNORECASE)
_CLOSING_DATE = re.compile(
    r"Date d['’]arr[êe]t[ée]\s*:\s*(\d{1,2})\s*([^\W\d_]+)\s*(\d{4})", re.IGNORECASE
)
_ANY_YEAR = re.compile(r"\b(20\d{2})\b")
_YEAR_SUFFIX = re.compile(r"[./](\d{4})$")

GRAMMAR = LineGrammar(
    name="credit_agricole_pdf",
    noise=tuple(
        re.compile(p, re.IGNORECASE)
        for p in (
            r"^page\s*\d",
            r"^relev[ée] de comptes",
            r"^date d['’]arr[êe]t[ée]",
            r"^cr[ée]dit agricole",
            r"^m\.\s+cercle",
            r"^votre agence",
            r"^votre conseiller",
            r"^vos contacts",
            r"^synth[èe]se",
            r"^iban\s*:",
            r"^bic\s*:",
            r"^total des op[ée]rations",
            r"^nouveau solde",
            r"^ancien solde",
            r"^solde au",
            r"^date\s+op[ée]",
            r"^date\s+valeur",
            r"^libell[ée]",
            r"^d[ée]bit",
            r"^cr[ée]dit",
            r"^t[ée]l\s*:",
            r"^internet\s*:",
            r"^www\.",
            r"^\d{6}\s+\d{6}",
            r"^vous concernant",
            r"^indice de r[ée]f[ée]rence",
            r"^conditions de d[ée]passement",
            r"^garantie des d[ée]p[ôo]ts",
            r"^les op[ée]rations dont",
            r"^caisse r[ée]gionale",
            r"^\+\s*\d",
            r"^[−-]\s*\d",
        )
    ),
    debit_cues=("carte x", "prlv ", "prélèvement", "vir inst vers"),
    credit_cues=("virt. appointements", "vir inst de ", "avoir carte", "remboursement"),
    late_credit_cues=("salaire", "paie"),
)

_PREFIXES = ((re.compile(r"^\d{2}/\d{2}\s*"), ""),)


@dataclass(frozen=True, slots=True)
class _StatementPeriod:
    year: int | None
    closing_month: int | None

    def year_for(self, month: int) -> int | None:
        if self.year is None:
            return None
        if month == 12 and self.closing_month == 1:
            return self.year - 1
        return self.year


def detect(text: str) -> bool:
    lowered = text.lower()
    return any(indicator in lowered for indicator in _INDICATORS)


def extract_accounts(text: str) -> list[AccountDescriptor]:
    accounts: list[AccountDescriptor] = []
    if m := _IBAN.search(text):
        iban = re.sub(r"\s", "", m.group(1))[:_IBAN_LENGTH]
        accounts.append(
            AccountDescriptor(
                number=iban,
                display_label="Compte Crédit Agricole",
                kind=AccountKind.CHECKING,
                masked_number="***" + iban[-4:],
            )
        )
    if m := _ACCOUNT_NO.search(text):
        number = m.group(1)
        if not any(number in acc.number for acc in accounts):
            accounts.append(
                AccountDescriptor(
                    number=number,
                    display_label="Compte Chèque Crédit Agricole",
                    kind=AccountKind.CHECKING,
                    masked_number="***" + number[-4:],
                )
            )
    if not accounts:
        accounts.append(
            AccountDescriptor(
                number=FALLBACK_ACCOUNT,
                display_label="Compte Crédit Agricole",
                kind=AccountKind.CHECKING,
            )
        )
    return accounts


def _period(text: str) -> _StatementPeriod:
    if m := _CLOSING_DATE.search(text):
        try:
            month = parse_french_month(m.group(2))
        except ValueError:
            month = None
        return _StatementPeriod(year=int(m.group(3)), closing_month=month)
    if m := _ANY_YEAR.search(text):
        return _StatementPeriod(year=int(m.group(1)), closing_month=None)
    return _StatementPeriod(year=None, closing_month=None)


def _entry_date(entry: LineEntry, period: _StatementPeriod) -> date:
    if m := _YEAR_SUFFIX.search(entry.value_date):
        year: int | None = int(m.group(1))
    else:
        month = int(entry.op_date[3:5])
        year = period.year_for(month)
    if year is None:
        raise ValueError(f"no statement year for {entry.op_date!r}")
    return parse_day_month(entry.op_date, year)


def extract_transactions(text: str, account_filter: str | None = None) -> Extraction:
    account_number = extract_accounts(text)[0].number
    if account_filter is not None and account_filter != account_number:
        return Extraction(transactions=())

    run = run_lines(GRAMMAR, text.splitlines())
    period = _period(text)
    out: list[CanonicalTransaction] = []
    skipped = run.skipped
    for entry in run.entries:
        try:
            when = _entry_date(entry, period)
        except ValueError as exc:
            _logger.debug("credit_agricole_pdf:skip reason=%s", exc)
            skipped += 1
            continue
        label = clean_label(entry.label, _PREFIXES)
        out.append(
            CanonicalTransaction(
                date=when,
                label=label,
                amount=entry.amount,
                category_guess=guess_basic(label),
                account_number=account_number,
            )
        )
    _logger.debug("credit_agricole_pdf:parsed transactions=%d skipped=%d", len(out), skipped)
    return Extraction(transactions=tuple(out), skipped=skipped)


FORMAT = StatementFormat(
    bank_id=BANK_ID,
    display_name=DISPLAY_NAME,
    kind=InputKind.DOCUMENT,
    detect=detect,
    extract_accounts=extract_accounts,
    extract_transactions=extract_transactions,
)

__all__ = ["FORMAT", "GRAMMAR", "detect", "extract_accounts", "extract_transactions"]
