"""Dialect-specific ``INSERT ... ON CONFLICT`` constructs."""
from __future__ import annotations

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_for(db: Session, model):
    """Return an insert construct supporting ``on_conflict_*`` for the bound dialect."""

    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not supported on {dialect}")
