"""Crédit Mutuel de Bretagne monthly statement (PDF).

Operations are grouped under banners (``VIREMENTS RECUS``, ``PAIEMENTS PAR
CARTE``...) and printed as ``DD/MM DD/MM/YYYY LABEL AMOUNT``; the value date
carries the year.
"""

from __future__ import annotations

import re
from datetime import date

from ..categories import guess_cmb_document
from ..logging_setup import get_logger
from ..models import AccountDescriptor, AccountKind, CanonicalTransaction, Extraction, InputKind
from ..normalizers import parse_day_month, parse_dmy
from ..sections import LineEntry, LineGrammar, clean_label, run_lines
from .base import StatementFormat

_logger = get_logger(__name__)

BANK_ID = "credit_mutuel_bretagne"
DISPLAY_NAME = "Crédit Mutuel de Bretagne"
FALLBACK_ACCOUNT = "CMB_DEFAULT"

_INDICATORS = (
    "crédit mutuel",
    "credit mutuel",
    "cmb.fr",
    "arkea",
    "arkéa",
    "cmbrfr2bark",
)

_IBAN = re.compile(r"IBAN\s*(FR\d{2}[\d \u00a0]+)", re.IGNORECASE)
_ACCOUNT_NO = re.compile(r"Compte\s*(\d{10,})", re.IGNORECASE)
_ANY_YEAR = re.compile(r"\b(20\d{2})\b")

GRAMMAR = LineGrammar(
    name="cmb_pdf",
    credit_banners=("VIREMENTS RECUS", "VIREMENTS REÇUS"),
    debit_banners=(
        "VIREMENTS EMIS ET PRELEVEMENTS",
        "PAIEMENTS PAR CARTE",
        "SERVICES ET FRAIS BANCAIRES",
        "RETRAITS",
        "PRELEVEMENTS",
    ),
    noise=tuple(
        re.compile(p, re.IGNORECASE)
        for p in (
            r"^Date\s+Date\s*de\s*Valeur",
            r"^Opération\s+Débit\s+Crédit",
            r"ANCIEN\s*SOLDE",
            r"NOUVEAU\s*SOLDE",
            r"^TOTAL\s*DES\s*OPÉRATIONS",
            r"Sous-total",
            r"^Page\s*\d",
            r"^Émis\s*le",
            r"^Relevé\s*de\s*Compte",
            r"^Titulaire",
            r"^Compte\s*\d",
            r"^N°\s*\d",
            r"Garantie.*dépôts",
            r"www\.cmb\.fr",
            r"IBAN\s*FR",
            r"^BIC\s",
            r"Crédit\s*Mutuel\s*Arkéa",
            r"\bORIAS\b",
            r"\bSiren\b",
            r"\bRCS\b",
        )
    ),
    debit_cues=(
        "vir inst vers",
        "virement vers",
        "prlv",
        "prélèvement",
        "carte ",
        "retrait",
        "frais",
    ),
    credit_cues=("vir de ", "virement de ", "remboursement"),
    late_credit_cues=("salaire",),
)

_PREFIXES = tuple(
    (re.compile(p, re.IGNORECASE), r)
    for p, r in (
        (r"^VIR\s*INST\s*", "Virement "),
        (r"^VIR(?:EMENT)?\b\s*", "Virement "),
        (r"^PRLV\s*SEPA\s*", "Prélèvement "),
        (r"^PRLV\s*", "Prélèvement "),
        (r"^CARTE\s*\d{2}/\d{2}\s*", "CB "),
        (r"^CB\s*", "CB "),
        (r"^WERO\s*", "Wero "),
    )
)

_MIN_LABEL = 2


def detect(text: str) -> bool:
    lowered = text.lower()
    return any(indicator in lowered for indicator in _INDICATORS)


def extract_accounts(text: str) -> list[AccountDescriptor]:
    if m := _IBAN.search(text):
        number = re.sub(r"\s", "", m.group(1))
    elif m := _ACCOUNT_NO.search(text):
        number = m.group(1)
    else:
        return [
            AccountDescriptor(
                number=FALLBACK_ACCOUNT,
                display_label="Compte Crédit Mutuel",
                kind=AccountKind.CHECKING,
            )
        ]
    return [
        AccountDescriptor(
            number=number,
            display_label="Compte CMB",
            kind=AccountKind.CHECKING,
            masked_number="***" + number[-4:],
        )
    ]


def _statement_year(text: str) -> int | None:
    m = _ANY_YEAR.search(text)
    return int(m.group(1)) if m else None


def _entry_date(entry: LineEntry, year: int | None) -> date:
    # The value date normally carries the year; the operation date never does.
    if len(entry.value_date) > 5:
        return parse_dmy(entry.value_date)
    if year is None:
        raise ValueError(f"no year available for {entry.op_date!r}")
    return parse_day_month(entry.op_date, year)


def extract_transactions(text: str, account_filter: str | None = None) -> Extraction:
    account_number = extract_accounts(text)[0].number
    if account_filter is not None and account_filter != account_number:
        return Extraction(transactions=())

    run = run_lines(GRAMMAR, text.splitlines())
    year = _statement_year(text)
    out: list[CanonicalTransaction] = []
    skipped = run.skipped
    for entry in run.entries:
        label = clean_label(entry.label, _PREFIXES)
        if len(label) < _MIN_LABEL:
            skipped += 1
            continue
        try:
            when = _entry_date(entry, year)
        except ValueError as exc:
            _logger.debug("cmb_pdf:skip reason=%s", exc)
            skipped += 1
            continue
        out.append(
            CanonicalTransaction(
                date=when,
                label=label,
                amount=entry.amount,
                category_guess=guess_cmb_document(label),
                account_number=account_number,
            )
        )
    _logger.debug("cmb_pdf:parsed transactions=%d skipped=%d", len(out), skipped)
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
