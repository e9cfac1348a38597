"""
Shared SQLAlchemy base and helpers.
"""
from datetime import datetime, timezone, UTC
from typing import Optional

from sqlalchemy.orm import declarative_base

# Register SQLite compilers for PostgreSQL-only types before any table is built.
from .. import sqlite_compiler_shims  # noqa: F401


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Base = declarative_base()
