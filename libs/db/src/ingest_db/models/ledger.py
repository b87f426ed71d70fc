from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements ``INTEGER PRIMARY KEY`` columns; Postgres keeps BIGINT.
_PK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Accounts: si_accounts
# ---------------------------


class SiAccount(Base):
    __tablename__ = "si_accounts"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    bank_id: Mapped[str] = mapped_column(String, nullable=False)
    # Bank-side identifier (IBAN, account/card number, or a fallback such as
    # ``CMB_DEFAULT`` when the statement carries none).
    account_number: Mapped[str] = mapped_column(String, nullable=False)
    display_label: Mapped[str | None] = mapped_column(Text, nullable=True)
    kind: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'checking'"))
    masked_number: Mapped[str | None] = mapped_column(String, nullable=True)
    known_balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )

    __table_args__ = (
        UniqueConstraint(
            "owner_id", "bank_id", "account_number", name="uq_si_accounts_owner_bank_number"
        ),
        CheckConstraint(
            "kind in ('checking','savings','youth_savings','card','other')",
            name="ck_si_accounts_kind",
        ),
    )


# ---------------------------
# Core: si_transactions
# ---------------------------


class SiTransaction(Base):
    __tablename__ = "si_transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("si_accounts.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    # Globally unique: the same (date, label, amount) triple is one transaction
    # no matter which statement or account it was imported from.
    fingerprint_sha256: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Stored as handed over by the label sealer (plaintext or ciphertext).
    label: Mapped[str] = mapped_column(Text, nullable=False)
    label_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    category_guess: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )


__all__ = [
    "Base",
    "SiAccount",
    "SiTransaction",
]
