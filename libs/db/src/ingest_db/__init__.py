"""ingest_db: shared database library (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``ingest_db.models.ledger`` (re-exported for convenience)
- Engine/session helpers in ``ingest_db.client``
"""

from __future__ import annotations

from .models.ledger import Base, SiAccount, SiTransaction

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "SiAccount",
    "SiTransaction",
]
