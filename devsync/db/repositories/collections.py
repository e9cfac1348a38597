"""
Collection repository functions.

Entry ordering reads always use (order, added_at) so rows that share an order
value keep a stable sequence.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from devsync.db import models
from . import insert_unique


def get_collection(db: Session, collection_id: uuid.UUID) -> Optional[models.Collection]:
    return db.query(models.Collection).filter(models.Collection.id == collection_id).first()


def create_collection(
    db: Session,
    *,
    user_id: uuid.UUID,
    name: str,
    description: Optional[str] = None,
    organization_id: Optional[uuid.UUID] = None,
) -> models.Collection:
    collection = models.Collection(
        user_id=user_id,
        name=name,
        description=description,
        organization_id=organization_id,
    )
    db.add(collection)
    db.flush()
    return collection


def delete_collection(db: Session, collection: models.Collection) -> None:
    db.delete(collection)
    db.flush()


def list_collections_for_user(db: Session, user_id: uuid.UUID, organization_ids: List[uuid.UUID]) -> List[models.Collection]:
    personal = (models.Collection.user_id == user_id) & models.Collection.organization_id.is_(None)
    if organization_ids:
        condition = or_(personal, models.Collection.organization_id.in_(organization_ids))
    else:
        condition = personal
    return db.query(models.Collection).filter(condition).order_by(models.Collection.name.asc()).all()


def list_entries(db: Session, collection_id: uuid.UUID, for_update: bool = False) -> List[models.SnippetCollection]:
    """Entries of a collection in display order.

    ``for_update`` row-locks the entries (PostgreSQL) so concurrent reorders of
    the same collection apply one after the other.
    """
    q = (
        db.query(models.SnippetCollection)
        .filter(models.SnippetCollection.collection_id == collection_id)
        .order_by(models.SnippetCollection.order.asc(), models.SnippetCollection.added_at.asc())
    )
    if for_update:
        q = q.with_for_update()
    return q.all()


def list_entries_with_snippets(db: Session, collection_id: uuid.UUID) -> List[Tuple[models.SnippetCollection, models.Snippet]]:
    return (
        db.query(models.SnippetCollection, models.Snippet)
        .join(models.Snippet, models.Snippet.id == models.SnippetCollection.snippet_id)
        .filter(models.SnippetCollection.collection_id == collection_id)
        .order_by(models.SnippetCollection.order.asc(), models.SnippetCollection.added_at.asc())
        .all()
    )


def get_entry(db: Session, collection_id: uuid.UUID, snippet_id: uuid.UUID) -> Optional[models.SnippetCollection]:
    return (
        db.query(models.SnippetCollection)
        .filter(
            models.SnippetCollection.collection_id == collection_id,
            models.SnippetCollection.snippet_id == snippet_id,
        )
        .first()
    )


def max_order(db: Session, collection_id: uuid.UUID) -> Optional[int]:
    return (
        db.query(func.max(models.SnippetCollection.order))
        .filter(models.SnippetCollection.collection_id == collection_id)
        .scalar()
    )


def add_entry(db: Session, *, collection_id: uuid.UUID, snippet_id: uuid.UUID, order: int) -> models.SnippetCollection:
    """Insert a collection entry; raises UniqueViolation if already present."""
    entry = models.SnippetCollection(collection_id=collection_id, snippet_id=snippet_id, order=order)
    return insert_unique(db, entry)


def delete_entry(db: Session, entry: models.SnippetCollection) -> None:
    db.delete(entry)
    db.flush()


def detach_from_personal_collections(db: Session, snippet_id: uuid.UUID) -> int:
    """Remove ``snippet_id`` from every organization-less collection."""
    personal_ids = select(models.Collection.id).where(models.Collection.organization_id.is_(None))
    removed = (
        db.query(models.SnippetCollection)
        .filter(
            models.SnippetCollection.snippet_id == snippet_id,
            models.SnippetCollection.collection_id.in_(personal_ids),
        )
        .delete(synchronize_session=False)
    )
    db.flush()
    return removed
