# ruff: noqa: I001
"""Ingestion core tables: accounts and deduplicated transactions.

Revision ID: 0001_ingest_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ingest_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "si_accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Text(), nullable=False),
        sa.Column("bank_id", sa.Text(), nullable=False),
        sa.Column("account_number", sa.Text(), nullable=False),
        sa.Column("display_label", sa.Text(), nullable=True),
        sa.Column("kind", sa.Text(), nullable=False, server_default=sa.text("'checking'")),
        sa.Column("masked_number", sa.Text(), nullable=True),
        sa.Column("known_balance", sa.Numeric(18, 2), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "owner_id", "bank_id", "account_number", name="uq_si_accounts_owner_bank_number"
        ),
        sa.CheckConstraint(
            "kind in ('checking','savings','youth_savings','card','other')",
            name="ck_si_accounts_kind",
        ),
    )

    op.create_table(
        "si_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("si_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.Text(), nullable=False),
        sa.Column("fingerprint_sha256", sa.CHAR(64), nullable=False, unique=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("label_hash", sa.CHAR(64), nullable=False),
        sa.Column("category_guess", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # Per-account timelines are the main read path.
    op.create_index(
        "ix_si_transactions_account_date", "si_transactions", ["account_id", "date"]
    )
    op.create_index("ix_si_transactions_label_hash", "si_transactions", ["label_hash"])


def downgrade() -> None:
    op.drop_index("ix_si_transactions_label_hash", table_name="si_transactions")
    op.drop_index("ix_si_transactions_account_date", table_name="si_transactions")
    op.drop_table("si_transactions")
    op.drop_table("si_accounts")
