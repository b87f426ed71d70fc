"""The record every statement format registers.

A format is a bundle of plain functions over decoded text; it carries no
state of its own, so one instance is shared by every parse call.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..models import AccountDescriptor, Extraction, InputKind

type Detector = Callable[[str], bool]
type AccountExtractor = Callable[[str], list[AccountDescriptor]]
type TransactionExtractor = Callable[[str, str | None], Extraction]


@dataclass(frozen=True, slots=True)
class StatementFormat:
    bank_id: str
    display_name: str
    kind: InputKind
    detect: Detector
    extract_accounts: AccountExtractor
    extract_transactions: TransactionExtractor


__all__ = ["StatementFormat"]
