"""SQLite compilation shims for PostgreSQL-specific SQLAlchemy types.

This module installs lightweight compilers for JSONB when the active dialect
is SQLite so that declarative metadata can be created in test runs that
substitute an in-memory SQLite database. The goal is only to allow
`Base.metadata.create_all()` to succeed; no attempt is made to fully emulate
PostgreSQL JSONB behavior.

Usage: Imported for side-effects by devsync.db.models.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles

# These functions are ignored for other dialects.

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    # Stored as TEXT; JSONB operators are unavailable under SQLite.
    return "JSON"
