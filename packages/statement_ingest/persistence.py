# ruff: noqa: I001
"""Import reconciliation for statement_ingest.

Writes parsed accounts and transactions to the shared database owned by
``libs/db`` (models in ``ingest_db.models.ledger``). The caller provides the
session, normally through ``ingest_db.client.session_scope``, so one import
is one database transaction.

Scope:
- Resolve or create ``si_accounts`` rows keyed by ``(owner, bank, number)``.
- Insert ``si_transactions`` keyed by a content fingerprint; rows whose
  fingerprint already exists are counted as duplicates, never updated.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ingest_db.models.ledger import SiAccount, SiTransaction
from .logging_setup import get_logger
from .models import AccountDescriptor, AccountKind, CanonicalTransaction
from .tokenizer import collapse_whitespace

_logger = get_logger(__name__)

# Keeps multi-row VALUES under SQLite's bound-parameter limit.
_INSERT_CHUNK = 500


def compute_fingerprint(tx: CanonicalTransaction) -> str:
    """Compute a stable SHA-256 fingerprint over ``(date, label, amount)``.

    The account is not part of the payload, so the same operation seen in two
    different exports yields one fingerprint.
    """

    payload = {
        "date": tx.date.isoformat(),
        "label": tx.label,
        "amount": f"{tx.amount:.2f}",
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class LabelSealer(Protocol):
    """Storage collaborator that protects labels at rest."""

    def seal(self, label: str) -> str: ...

    def digest(self, label: str) -> str: ...


class PlaintextSealer:
    """Default sealer: stores labels as-is with a hash of the normalized label."""

    def seal(self, label: str) -> str:
        return label

    def digest(self, label: str) -> str:
        normalized = collapse_whitespace(label).casefold()
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    inserted_count: int
    duplicate_count: int
    account_id: int | None
    account_ids: dict[str, int] = field(default_factory=dict)


def _insert_for(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"reconcile: unsupported database dialect {dialect!r}")


def _referenced_numbers(
    accounts: Sequence[AccountDescriptor], transactions: Sequence[CanonicalTransaction]
) -> list[str]:
    seen: dict[str, None] = {}
    for acc in accounts:
        seen.setdefault(acc.number, None)
    for tx in transactions:
        seen.setdefault(tx.account_number, None)
    return list(seen)


def _resolve_accounts(
    session: Session,
    *,
    numbers: Sequence[str],
    descriptors: Sequence[AccountDescriptor],
    owner_id: str,
    bank_id: str,
) -> dict[str, int]:
    if not numbers:
        return {}
    insert = _insert_for(session)
    by_number = {acc.number: acc for acc in descriptors}
    rows: list[dict[str, Any]] = []
    for number in numbers:
        acc = by_number.get(number) or AccountDescriptor(
            number=number, display_label=number, kind=AccountKind.CHECKING
        )
        rows.append(
            {
                "owner_id": owner_id,
                "bank_id": bank_id,
                "account_number": number,
                "display_label": acc.display_label,
                "kind": str(acc.kind),
                "masked_number": acc.masked_number,
                "known_balance": acc.known_balance,
            }
        )

    stmt = insert(SiAccount).values(rows)
    # Existing accounts keep their identity; only a freshly reported balance moves.
    stmt = stmt.on_conflict_do_update(
        index_elements=[SiAccount.owner_id, SiAccount.bank_id, SiAccount.account_number],
        set_={
            "known_balance": func.coalesce(stmt.excluded.known_balance, SiAccount.known_balance),
            "updated_at": func.now(),
        },
    )
    session.execute(stmt)

    found = session.execute(
        select(SiAccount.account_number, SiAccount.id).where(
            SiAccount.owner_id == owner_id,
            SiAccount.bank_id == bank_id,
            SiAccount.account_number.in_(list(numbers)),
        )
    ).all()
    return {number: account_id for number, account_id in found}


def reconcile(
    session: Session,
    *,
    accounts: Sequence[AccountDescriptor],
    transactions: Iterable[CanonicalTransaction],
    owner_id: str,
    bank_id: str,
    sealer: LabelSealer | None = None,
) -> ReconcileOutcome:
    """Persist one parsed statement, skipping transactions already stored.

    Parameters
    ----------
    session:
        Active SQLAlchemy session; the caller commits or rolls back.
    accounts:
        Descriptors reported by the parser. The first one is the primary
        account of the import.
    transactions:
        Canonical transactions; each references an account by number.
    owner_id, bank_id:
        Scope of the account lookup.
    sealer:
        Label protection collaborator, :class:`PlaintextSealer` by default.

    Notes
    -----
    Deduplication is decided by the unique constraint on
    ``fingerprint_sha256`` (``ON CONFLICT DO NOTHING``), so two concurrent
    imports of the same statement cannot both insert a row.
    """

    sealer = sealer or PlaintextSealer()
    txs = list(transactions)
    numbers = _referenced_numbers(accounts, txs)
    account_ids = _resolve_accounts(
        session, numbers=numbers, descriptors=accounts, owner_id=owner_id, bank_id=bank_id
    )
    primary = account_ids.get(numbers[0]) if numbers else None

    rows: dict[str, dict[str, Any]] = {}
    for tx in txs:
        fingerprint = compute_fingerprint(tx)
        if fingerprint in rows:
            continue
        rows[fingerprint] = {
            "account_id": account_ids[tx.account_number],
            "owner_id": owner_id,
            "fingerprint_sha256": fingerprint,
            "date": tx.date,
            "amount": tx.amount,
            "label": sealer.seal(tx.label),
            "label_hash": sealer.digest(tx.label),
            "category_guess": tx.category_guess,
        }

    inserted = 0
    payloads = list(rows.values())
    insert = _insert_for(session)
    for start in range(0, len(payloads), _INSERT_CHUNK):
        stmt = (
            insert(SiTransaction)
            .values(payloads[start : start + _INSERT_CHUNK])
            .on_conflict_do_nothing(index_elements=[SiTransaction.fingerprint_sha256])
            .returning(SiTransaction.fingerprint_sha256)
        )
        inserted += len(session.execute(stmt).scalars().all())

    outcome = ReconcileOutcome(
        inserted_count=inserted,
        duplicate_count=len(txs) - inserted,
        account_id=primary,
        account_ids=account_ids,
    )
    _logger.info(
        "reconcile:done bank=%s owner=%s inserted=%d duplicates=%d",
        bank_id,
        owner_id,
        outcome.inserted_count,
        outcome.duplicate_count,
    )
    return outcome


__all__ = [
    "LabelSealer",
    "PlaintextSealer",
    "ReconcileOutcome",
    "compute_fingerprint",
    "reconcile",
]
