"""DB helpers for tests: bootstrap a temporary SQLite DB with the ingest schema."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path

from ingest_db import Base
from ingest_db.client import get_engine, session_scope
from ingest_db.models.ledger import SiTransaction
from sqlalchemy import event
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)

    # Enforce FKs and provide a `now()` shim so server_default=now() works
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):  # pragma: no cover - tiny bridge
        dbapi_conn.execute("PRAGMA foreign_keys = ON")
        dbapi_conn.create_function(
            "now", 0, lambda: datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        )

    Base.metadata.create_all(bind=engine)
    _assert_transactions_schema_in_sync(url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def count_transactions(database_url: str) -> int:
    with session_scope(database_url=database_url) as session:
        return session.execute(sql_text("SELECT COUNT(*) FROM si_transactions")).scalar_one()


def _assert_transactions_schema_in_sync(database_url: str) -> None:
    """Quick sanity check: ORM column set matches SQLite table column set."""

    expected = {c.name for c in SiTransaction.__table__.columns}
    with session_scope(database_url=database_url) as session:
        rows = session.execute(sql_text("PRAGMA table_info('si_transactions')")).fetchall()
        got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
    missing = expected - got
    extra = got - expected
    assert not missing and not extra, (
        f"si_transactions schema drift: missing={missing or '∅'}, extra={extra or '∅'}"
    )
