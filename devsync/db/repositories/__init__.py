"""
Per-domain repository modules for database access.

Repositories only read and stage writes (``flush``); committing is the
caller's decision so a service can group several repository calls into one
transaction. Inserts guarded by a unique key run inside a SAVEPOINT and raise
``UniqueViolation`` on conflict, leaving the outer transaction usable.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session


class UniqueViolation(Exception):
    """A unique constraint rejected an insert (typically a lost creation race)."""


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes the SQLSTATE; sqlite only reports text
    if getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig or exc).lower()


def insert_unique(db: Session, instance):
    """Insert ``instance`` in a savepoint, translating unique conflicts."""
    try:
        with db.begin_nested():
            db.add(instance)
            db.flush()
    except IntegrityError as exc:
        if _is_unique_violation(exc):
            raise UniqueViolation(str(getattr(exc, "orig", exc))) from exc
        raise
    return instance


__all__ = ["UniqueViolation", "insert_unique"]
