"""Shared SQLAlchemy models registry for the ingestion database.

Currently includes the ledger models written by ``statement_ingest``.
"""

from .ledger import Base, SiAccount, SiTransaction

__all__ = [
    "Base",
    "SiAccount",
    "SiTransaction",
]
