"""Line classifier for text extracted from PDF statements.

PDF text extraction flattens each statement into lines where a transaction
may occupy one line (``DD/MM DD/MM/YYYY LABEL 12,34``) or be split across a
date line, label continuations, and a trailing amount line. Amounts carry no
sign: whether a line is a debit or a credit comes from the section banner it
sits under (``VIREMENTS RECUS``, ``PAIEMENTS PAR CARTE``...), from keywords in
the label, or from glyphs the extractor leaves behind.

The classifier is a pure reducer::

    step(grammar, state, line) -> (state', entry | None)

``SectionState`` is immutable and carries the current section, the pending
(incomplete) entry, and the count of dropped records. Each bank contributes a
frozen ``LineGrammar`` of patterns and keyword cues; ``run_lines`` folds the
reducer over a document.

Sign resolution cascade, first decisive tier wins:

1. the section the entry started in;
2. the grammar's keyword cues (debit cues are checked before credit cues);
3. extractor glyphs (``þ`` marks a credit, a combining diaeresis a debit);
4. the grammar's late credit cues (``salaire``...);
5. otherwise debit. This default is a known limitation and is logged.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import StrEnum

from .logging_setup import get_logger
from .normalizers import parse_amount
from .tokenizer import collapse_whitespace

_logger = get_logger(__name__)

CREDIT_GLYPH = "þ"
DEBIT_GLYPH = "\u0308"

# ``1 706,14`` / ``1.706,14`` / ``12,50`` / ``12.50``
AMOUNT = r"\d{1,3}(?:[ \u00a0.]\d{3})*[,.]\d{2}"
_DAY_MONTH = r"\d{2}[./]\d{2}"
_OPTIONAL_YEAR = r"(?:[./]\d{4})?"
_TRAILER = r"\s*(?:€|EUR)?\s*[" + CREDIT_GLYPH + DEBIT_GLYPH + r"]?\s*$"

COMPLETE_LINE = re.compile(
    rf"^({_DAY_MONTH})\s+({_DAY_MONTH}{_OPTIONAL_YEAR})\s+(.+?)\s+({AMOUNT}){_TRAILER}"
)
DATE_ONLY_LINE = re.compile(rf"^({_DAY_MONTH})\s+({_DAY_MONTH}{_OPTIONAL_YEAR})(?:\s+(.*))?$")
AMOUNT_ONLY_LINE = re.compile(rf"^({AMOUNT}){_TRAILER}")
_DATE_LED = re.compile(rf"^{_DAY_MONTH}\b")

_UUID = re.compile(r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}", re.I)
_HEX_RUN = re.compile(r"[a-f0-9]{20,}", re.I)
_LONG_NUMBER = re.compile(r"\d{10,}")
_CAMEL_JOIN = re.compile(r"([a-z])([A-Z])")


class Section(StrEnum):
    UNKNOWN = "unknown"
    CREDIT = "credit"
    DEBIT = "debit"


class SignSource(StrEnum):
    SECTION = "section"
    KEYWORD = "keyword"
    GLYPH = "glyph"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class LineGrammar:
    """Bank-specific vocabulary for the classifier.

    Banners are compared with whitespace removed and upper-cased, because
    extraction sometimes glues words together (``VIREMENTSRECUS``).
    Cues are lower-case substrings searched in the label and the raw line.
    """

    name: str
    credit_banners: tuple[str, ...] = ()
    debit_banners: tuple[str, ...] = ()
    noise: tuple[re.Pattern[str], ...] = ()
    debit_cues: tuple[str, ...] = ()
    credit_cues: tuple[str, ...] = ()
    late_credit_cues: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Pending:
    op_date: str
    value_date: str
    label: str
    section: Section
    line: str


@dataclass(frozen=True, slots=True)
class SectionState:
    section: Section = Section.UNKNOWN
    pending: Pending | None = None
    skipped: int = 0


@dataclass(frozen=True, slots=True)
class LineEntry:
    """A classified transaction line; ``amount`` is already signed."""

    op_date: str
    value_date: str
    label: str
    amount: Decimal
    sign_source: SignSource


@dataclass(frozen=True, slots=True)
class LineRun:
    entries: tuple[LineEntry, ...] = field(default_factory=tuple)
    skipped: int = 0


def _compact(line: str) -> str:
    return re.sub(r"\s+", "", line).upper()


def _banner(grammar: LineGrammar, line: str) -> Section | None:
    if _DATE_LED.match(line):
        return None
    compact = _compact(line)
    if any(_compact(b) in compact for b in grammar.credit_banners):
        return Section.CREDIT
    if any(_compact(b) in compact for b in grammar.debit_banners):
        return Section.DEBIT
    return None


def _is_noise(grammar: LineGrammar, line: str) -> bool:
    return any(p.search(line) for p in grammar.noise)


def parse_unsigned(amount_text: str) -> Decimal:
    """Parse an extracted amount, deciding the decimal mark from its shape."""

    cleaned = amount_text.replace(CREDIT_GLYPH, "").replace(DEBIT_GLYPH, "").strip()
    sep = "," if "," in cleaned else "."
    return abs(parse_amount(cleaned, decimal_sep=sep))


def resolve_sign(
    grammar: LineGrammar, section: Section, label: str, line: str
) -> tuple[bool, SignSource]:
    """Return ``(is_credit, source)`` following the cascade in the module docstring."""

    if section is Section.CREDIT:
        return True, SignSource.SECTION
    if section is Section.DEBIT:
        return False, SignSource.SECTION

    low_label, low_line = label.lower(), line.lower()
    if any(c in low_label or c in low_line for c in grammar.debit_cues):
        return False, SignSource.KEYWORD
    if any(c in low_label or c in low_line for c in grammar.credit_cues):
        return True, SignSource.KEYWORD
    if CREDIT_GLYPH in line:
        return True, SignSource.GLYPH
    if DEBIT_GLYPH in line:
        return False, SignSource.GLYPH
    if any(c in low_label for c in grammar.late_credit_cues):
        return True, SignSource.KEYWORD
    return False, SignSource.DEFAULT


def _entry(
    grammar: LineGrammar,
    *,
    op_date: str,
    value_date: str,
    label: str,
    amount_text: str,
    section: Section,
    line: str,
) -> LineEntry | None:
    amount = parse_unsigned(amount_text)
    if amount == 0:
        return None
    is_credit, source = resolve_sign(grammar, section, label, line)
    if source is SignSource.DEFAULT:
        _logger.debug("sections:default_sign grammar=%s label=%r", grammar.name, label)
    return LineEntry(
        op_date=op_date,
        value_date=value_date,
        label=collapse_whitespace(label),
        amount=amount if is_credit else -amount,
        sign_source=source,
    )


def _drop_pending(state: SectionState) -> SectionState:
    if state.pending is None:
        return state
    _logger.debug("sections:drop_pending label=%r", state.pending.label)
    return replace(state, pending=None, skipped=state.skipped + 1)


def step(
    grammar: LineGrammar, state: SectionState, line: str
) -> tuple[SectionState, LineEntry | None]:
    """Advance the classifier by one extracted line."""

    line = line.strip()
    if not line:
        return state, None

    section = _banner(grammar, line)
    if section is not None:
        return replace(state, section=section), None

    if _is_noise(grammar, line):
        return state, None

    if m := COMPLETE_LINE.match(line):
        state = _drop_pending(state)
        try:
            entry = _entry(
                grammar,
                op_date=m.group(1),
                value_date=m.group(2),
                label=m.group(3),
                amount_text=m.group(4),
                section=state.section,
                line=line,
            )
        except ValueError:
            return replace(state, skipped=state.skipped + 1), None
        return state, entry

    if m := DATE_ONLY_LINE.match(line):
        state = _drop_pending(state)
        pending = Pending(
            op_date=m.group(1),
            value_date=m.group(2),
            label=m.group(3) or "",
            section=state.section,
            line=line,
        )
        return replace(state, pending=pending), None

    pending = state.pending
    if pending is None:
        return state, None

    if m := AMOUNT_ONLY_LINE.match(line):
        try:
            entry = _entry(
                grammar,
                op_date=pending.op_date,
                value_date=pending.value_date,
                label=pending.label,
                amount_text=m.group(1),
                section=pending.section,
                line=f"{pending.line} {line}",
            )
        except ValueError:
            return replace(state, pending=None, skipped=state.skipped + 1), None
        return replace(state, pending=None), entry

    continued = replace(pending, label=f"{pending.label} {line}".strip())
    return replace(state, pending=continued), None


def run_lines(grammar: LineGrammar, lines: Iterable[str]) -> LineRun:
    """Fold :func:`step` over ``lines``; an entry still pending at the end is dropped."""

    state = SectionState()
    entries: list[LineEntry] = []
    for line in lines:
        state, entry = step(grammar, state, line)
        if entry is not None:
            entries.append(entry)
    state = _drop_pending(state)
    return LineRun(entries=tuple(entries), skipped=state.skipped)


def clean_label(label: str, prefixes: Iterable[tuple[re.Pattern[str], str]] = ()) -> str:
    """Normalize an extracted label.

    Collapses whitespace, splits words glued at a lower/upper boundary, applies
    the first matching prefix rewrite, and removes reference noise (UUIDs, long
    hex runs, 10+ digit numbers) and extractor glyphs.
    """

    s = collapse_whitespace(label.replace(CREDIT_GLYPH, " ").replace(DEBIT_GLYPH, " "))
    s = _CAMEL_JOIN.sub(r"\1 \2", s)
    for pattern, replacement in prefixes:
        if pattern.search(s):
            s = pattern.sub(replacement, s, count=1)
            break
    s = _UUID.sub("", s)
    s = _HEX_RUN.sub("", s)
    s = _LONG_NUMBER.sub("", s)
    return collapse_whitespace(s)


__all__ = [
    "AMOUNT",
    "AMOUNT_ONLY_LINE",
    "COMPLETE_LINE",
    "CREDIT_GLYPH",
    "DATE_ONLY_LINE",
    "DEBIT_GLYPH",
    "LineEntry",
    "LineGrammar",
    "LineRun",
    "Pending",
    "Section",
    "SectionState",
    "SignSource",
    "clean_label",
    "parse_unsigned",
    "resolve_sign",
    "run_lines",
    "step",
]
