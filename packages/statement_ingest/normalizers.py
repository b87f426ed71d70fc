"""Locale-aware amount and date normalization.

French bank exports write amounts with a comma decimal separator and a space
(often a no-break space) as the thousands separator: ``1 706,14``. Some
exports prefix a sign, a unicode minus, or a currency mark. Everything is
parsed into ``Decimal`` quantized to cents; binary floats never appear.

Every parser here raises ``ValueError`` on malformed input so callers can
skip and tally the offending record.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENT = Decimal("0.01")

# Signs and marks stripped before the numeric body is inspected.
_MINUS_CHARS = ("-", "−", "–")
_CURRENCY_MARKS = ("€", "EUR", "eur")
# Regular, no-break and narrow no-break spaces.
_SPACES = re.compile(r"[ \u00a0\u202f\t]")

_FRENCH_MONTHS = {
    "janvier": 1,
    "fevrier": 2,
    "mars": 3,
    "avril": 4,
    "mai": 5,
    "juin": 6,
    "juillet": 7,
    "aout": 8,
    "septembre": 9,
    "octobre": 10,
    "novembre": 11,
    "decembre": 12,
}

_DMY = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2}|\d{4})$")
_DM = re.compile(r"^(\d{1,2})[/.](\d{1,2})$")


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def _quantize(d: Decimal) -> Decimal:
    return d.quantize(_CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: str | None, *, decimal_sep: str = ",") -> Decimal:
    """Parse a locale-formatted amount into a 2-dp ``Decimal``.

    Parameters
    ----------
    raw:
        Text such as ``"1 200,00"``, ``"-5,99 €"``, ``"+12,50"`` or (with
        ``decimal_sep="."``) ``"-1,234.56"``.
    decimal_sep:
        ``","`` for French exports, ``"."`` for exports in English notation.
        The other punctuation mark is treated as a thousands separator.

    Raises
    ------
    ValueError
        When ``raw`` is missing, blank, or not a number.
    """

    if raw is None:
        raise ValueError("amount is required")
    s = _SPACES.sub("", raw.strip())
    if not s:
        raise ValueError("amount is empty")

    negative = False
    # Strip leading sign and currency marks in any order until stable.
    while True:
        changed = False
        for mark in _CURRENCY_MARKS:
            if s.startswith(mark):
                s = s[len(mark) :]
                changed = True
            if s.endswith(mark):
                s = s[: -len(mark)]
                changed = True
        if s.startswith("+"):
            s = s[1:]
            changed = True
        elif s.startswith(_MINUS_CHARS):
            negative = not negative
            s = s[1:]
            changed = True
        elif s.endswith(_MINUS_CHARS):
            # Some ledgers print the sign after the number: ``12,00-``.
            negative = not negative
            s = s[:-1]
            changed = True
        if not changed:
            break

    thousands = "." if decimal_sep == "," else ","
    s = s.replace(thousands, "")
    if decimal_sep != ".":
        if s.count(decimal_sep) > 1:
            raise ValueError(f"invalid amount: {raw!r}")
        s = s.replace(decimal_sep, ".")

    if not s or not re.fullmatch(r"\d+(?:\.\d+)?|\.\d+", s):
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    d = _quantize(d)
    return -d if negative else d


def parse_optional_amount(raw: str | None, *, decimal_sep: str = ",") -> Decimal | None:
    """Like :func:`parse_amount` but blank cells yield ``None``."""

    if raw is None or not _SPACES.sub("", raw):
        return None
    return parse_amount(raw, decimal_sep=decimal_sep)


def format_amount(d: Decimal) -> str:
    # Exactly two decimals; ASCII dot; leading minus for negatives.
    return f"{_quantize(d):.2f}"


def debit(d: Decimal) -> Decimal:
    """Force a debit sign (``<= 0``) whatever the column printed."""

    return -abs(d)


def credit(d: Decimal) -> Decimal:
    return abs(d)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_dmy(raw: str | None) -> date:
    """Parse ``DD/MM/YYYY`` (also ``.`` or ``-`` separated, 2-digit years)."""

    if raw is None:
        raise ValueError("date is required")
    m = _DMY.match(raw.strip())
    if not m:
        raise ValueError(f"invalid DD/MM/YYYY date: {raw!r}")
    day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if len(m.group(3)) == 2:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"invalid DD/MM/YYYY date: {raw!r}") from exc


def parse_day_month(raw: str | None, year: int) -> date:
    """Parse ``DD/MM`` or ``DD.MM`` against an explicitly supplied year."""

    if raw is None:
        raise ValueError("date is required")
    m = _DM.match(raw.strip())
    if not m:
        raise ValueError(f"invalid DD/MM date: {raw!r}")
    try:
        return date(year, int(m.group(2)), int(m.group(1)))
    except ValueError as exc:
        raise ValueError(f"invalid DD/MM date: {raw!r}") from exc


def parse_iso_datetime_date(raw: str | None) -> date:
    """Return the date part of ``YYYY-MM-DD``, ``YYYY-MM-DD HH:MM:SS`` or the
    ``T``-separated form."""

    if raw is None:
        raise ValueError("date is required")
    s = raw.strip()
    if not s:
        raise ValueError("date is empty")
    first = s.split()[0].split("T", 1)[0]
    try:
        return datetime.strptime(first, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"invalid ISO date: {raw!r}") from exc


def strip_accents(s: str) -> str:
    decomposed = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def parse_french_month(name: str) -> int:
    """Map a French month name (accents optional, any case) to ``1..12``."""

    key = strip_accents(name.strip()).lower()
    try:
        return _FRENCH_MONTHS[key]
    except KeyError as exc:
        raise ValueError(f"unknown month name: {name!r}") from exc


__all__ = [
    "credit",
    "debit",
    "format_amount",
    "parse_amount",
    "parse_day_month",
    "parse_dmy",
    "parse_french_month",
    "parse_iso_datetime_date",
    "parse_optional_amount",
    "strip_accents",
]
