"""Field splitting for delimiter-separated statement exports.

Bank CSV exports are not reliably RFC 4180 at the file level: the delimiter
varies (``;`` for French banks, ``,`` for Revolut), quoted labels carry line
breaks and even blank lines, and some banks prepend free-text banners before
the column header. Records are therefore located here and each one is handed
to the stdlib :mod:`csv` reader (quoted fields with embedded delimiters and
newlines, doubled quotes). The helpers work on already-decoded text and never
guess the delimiter.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator


def tokenize_record(span: str, *, delimiter: str = ";", quote: str = '"') -> list[str]:
    """Split one logical record into stripped fields.

    An unterminated quote runs to the end of ``span``. A trailing delimiter
    yields a trailing empty field, matching how the banks terminate rows
    (``date;label;debit;credit;``). Lines after the record's end are ignored.

    Raises
    ------
    ValueError
        If the reader rejects the record.
    """

    reader = csv.reader(span.splitlines(keepends=True), delimiter=delimiter, quotechar=quote)
    try:
        row = next(reader, [""])
    except csv.Error as exc:
        raise ValueError(f"unreadable record: {exc}") from exc
    return [f.strip() for f in row]


def quote_open_after(line: str, open_: bool, quote: str = '"') -> bool:
    """Return whether a quoted field is still open at the end of ``line``."""

    # Every quote character toggles state; a doubled quote toggles twice.
    return open_ ^ (line.count(quote) % 2 == 1)


def join_quoted_lines(lines: Iterable[str], *, quote: str = '"') -> Iterator[str]:
    """Re-assemble physical lines into logical records.

    A record whose quote is still open at the end of a physical line keeps
    consuming lines (blank ones included) until the quote closes. Blank lines
    outside quotes are dropped.
    """

    pending: list[str] = []
    open_ = False
    for line in lines:
        line = line.rstrip("\r")
        if not pending and not line.strip():
            continue
        pending.append(line)
        open_ = quote_open_after(line, open_, quote)
        if not open_:
            yield "\n".join(pending)
            pending = []
    if pending:
        # Unterminated quote at end of input: hand it over as-is.
        yield "\n".join(pending)


def group_dated_records(lines: Iterable[str], start: re.Pattern[str]) -> Iterator[str]:
    """Group physical lines into records that each begin at a ``start`` match.

    Every line after a start line, blank lines included, belongs to that
    record until the next start line. Lines before the first start line are
    ignored.
    """

    current: list[str] | None = None
    for line in lines:
        line = line.rstrip("\r")
        if start.match(line):
            if current is not None:
                yield "\n".join(current)
            current = [line]
        elif current is not None:
            current.append(line)
    if current is not None:
        yield "\n".join(current)


def collapse_whitespace(s: str) -> str:
    return " ".join(s.split())


__all__ = [
    "collapse_whitespace",
    "group_dated_records",
    "join_quoted_lines",
    "quote_open_after",
    "tokenize_record",
]
