"""Custom SQLAlchemy column types and defaults."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import JSONB as PGJSONB
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON


def JSONBType(**kwargs):
    """Return a JSONB column type compatible with SQLite for tests."""
    return PGJSONB(**kwargs).with_variant(SQLiteJSON(), "sqlite")


def utcnow() -> datetime:
    """Column default for timezone-aware timestamps."""
    return datetime.now(timezone.utc)
