# ruff: noqa: I001
from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ingest_db.client import session_scope
from ingest_db.models.ledger import SiAccount, SiTransaction

from statement_ingest.api import import_statement
from statement_ingest.models import AccountDescriptor, CanonicalTransaction, InputKind, RawInput
from statement_ingest import persistence
from statement_ingest.persistence import PlaintextSealer, compute_fingerprint, reconcile

from tests.helpers.db import bootstrap_sqlite_db, count_transactions


def _tx(label: str, amount: str, account: str = "ACC1", day: int = 1) -> CanonicalTransaction:
    return CanonicalTransaction(
        date=date(2024, 2, day),
        label=label,
        amount=Decimal(amount),
        category_guess=None,
        account_number=account,
    )


def test_fingerprint_is_stable_and_ignores_account():
    a = _tx("CB APPLE.COM", "-5.99", account="ACC1")
    b = _tx("CB APPLE.COM", "-5.99", account="ACC2")
    assert compute_fingerprint(a) == compute_fingerprint(b)
    assert len(compute_fingerprint(a)) == 64
    assert compute_fingerprint(a) != compute_fingerprint(_tx("CB APPLE.COM", "-5.98"))


def test_plaintext_sealer_digest_normalizes_label():
    sealer = PlaintextSealer()
    assert sealer.seal("CB  Apple") == "CB  Apple"
    assert sealer.digest("CB  Apple") == sealer.digest(" cb apple ")


def test_reconcile_is_idempotent(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    accounts = [AccountDescriptor(number="ACC1", display_label="Compte", known_balance=None)]
    txs = [_tx("CB APPLE.COM", "-5.99"), _tx("SALAIRE", "1200.00", day=2)]

    with session_scope(database_url=url) as session:
        first = reconcile(
            session, accounts=accounts, transactions=txs, owner_id="u1", bank_id="cmb"
        )
    with session_scope(database_url=url) as session:
        second = reconcile(
            session, accounts=accounts, transactions=txs, owner_id="u1", bank_id="cmb"
        )

    assert (first.inserted_count, first.duplicate_count) == (2, 0)
    assert (second.inserted_count, second.duplicate_count) == (0, 2)
    assert first.account_id == second.account_id
    assert count_transactions(url) == 2


def test_reconcile_counts_in_batch_duplicates(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    same = _tx("CB LIDL", "-9.90")
    with session_scope(database_url=url) as session:
        outcome = reconcile(
            session, accounts=[], transactions=[same, same], owner_id="u1", bank_id="cmb"
        )
    assert (outcome.inserted_count, outcome.duplicate_count) == (1, 1)
    # The account referenced only by transactions is created on the fly.
    assert list(outcome.account_ids) == ["ACC1"]


def test_reconcile_creates_every_referenced_account(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    accounts = [
        AccountDescriptor(number="A", display_label="Compte A", known_balance=Decimal("10.00")),
        AccountDescriptor(number="B", display_label="Livret B"),
    ]
    txs = [_tx("X", "-1.00", account="A"), _tx("Y", "2.00", account="B")]
    with session_scope(database_url=url) as session:
        outcome = reconcile(
            session, accounts=accounts, transactions=txs, owner_id="u1", bank_id="ca"
        )

    with session_scope(database_url=url) as session:
        rows = session.execute(
            select(SiAccount.account_number, SiAccount.known_balance).order_by(
                SiAccount.account_number
            )
        ).all()
        tx_accounts = session.execute(
            select(SiTransaction.label, SiTransaction.account_id).order_by(SiTransaction.label)
        ).all()

    assert [r.account_number for r in rows] == ["A", "B"]
    assert rows[0].known_balance == Decimal("10.00")
    assert outcome.account_id == outcome.account_ids["A"]
    assert dict(tx_accounts) == {"X": outcome.account_ids["A"], "Y": outcome.account_ids["B"]}


def test_same_account_number_is_scoped_per_owner(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    accounts = [AccountDescriptor(number="ACC1", display_label="Compte")]
    with session_scope(database_url=url) as session:
        a = reconcile(session, accounts=accounts, transactions=[], owner_id="u1", bank_id="cmb")
        b = reconcile(session, accounts=accounts, transactions=[], owner_id="u2", bank_id="cmb")
    assert a.account_id != b.account_id
    assert (a.inserted_count, a.duplicate_count) == (0, 0)


def test_import_statement_twice(tmp_path: Path, data_dir: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    raw = RawInput(
        data=(data_dir / "credit_agricole_export.csv").read_bytes(), kind=InputKind.TABULAR
    )

    first = import_statement(raw, owner_id="u1", database_url=url)
    second = import_statement(raw, owner_id="u1", database_url=url)

    assert first.success and second.success
    assert (first.inserted, first.duplicates, first.skipped_records) == (5, 0, 1)
    assert (second.inserted, second.duplicates) == (0, 5)
    assert set(first.account_ids) == {"12345678901", "55512345678"}
    assert count_transactions(url) == 5


def test_import_statement_unsupported_touches_nothing(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    result = import_statement(
        RawInput(data=b"nothing here", kind=InputKind.TABULAR), owner_id="u1", database_url=url
    )
    assert not result.success
    assert count_transactions(url) == 0


class _FailingSealer(PlaintextSealer):
    """Seals normally until it meets ``bad_label``."""

    def __init__(self, bad_label: str, *, seal_to_none: bool = False) -> None:
        self.bad_label = bad_label
        self.seal_to_none = seal_to_none

    def seal(self, label: str):
        if label == self.bad_label:
            if self.seal_to_none:
                return None
            raise RuntimeError("sealing key unavailable")
        return super().seal(label)


def _account_count(url: str) -> int:
    with session_scope(database_url=url) as session:
        return session.execute(select(func.count()).select_from(SiAccount)).scalar_one()


def test_failure_in_a_later_chunk_commits_nothing(tmp_path: Path, monkeypatch):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    monkeypatch.setattr(persistence, "_INSERT_CHUNK", 1)
    accounts = [AccountDescriptor(number="ACC1", display_label="Compte")]
    txs = [_tx("CB LIDL", "-9.90"), _tx("BOOM", "-1.00", day=2)]

    with pytest.raises(IntegrityError):
        with session_scope(database_url=url) as session:
            reconcile(
                session,
                accounts=accounts,
                transactions=txs,
                owner_id="u1",
                bank_id="cmb",
                sealer=_FailingSealer("BOOM", seal_to_none=True),
            )

    assert count_transactions(url) == 0
    assert _account_count(url) == 0


def test_sealer_error_rolls_back_accounts(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ingest.sqlite")
    txs = [_tx("CB LIDL", "-9.90"), _tx("SECRET", "-1.00", day=2)]

    with pytest.raises(RuntimeError, match="sealing key"):
        with session_scope(database_url=url) as session:
            reconcile(
                session,
                accounts=[],
                transactions=txs,
                owner_id="u1",
                bank_id="cmb",
                sealer=_FailingSealer("SECRET"),
            )

    assert count_transactions(url) == 0
    assert _account_count(url) == 0
