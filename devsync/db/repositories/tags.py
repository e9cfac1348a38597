"""
Tag repository functions.

Tags live in a namespace: ``organization_id`` None is the personal namespace,
otherwise the organization's own.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from devsync.db import models
from . import insert_unique


def _scope_filter(organization_id: Optional[uuid.UUID]):
    if organization_id is None:
        return models.Tag.organization_id.is_(None)
    return models.Tag.organization_id == organization_id


def get_tag(db: Session, name: str, organization_id: Optional[uuid.UUID]) -> Optional[models.Tag]:
    return db.query(models.Tag).filter(models.Tag.name == name, _scope_filter(organization_id)).first()


def create_tag(db: Session, name: str, organization_id: Optional[uuid.UUID]) -> models.Tag:
    """Insert a tag; raises UniqueViolation when a concurrent insert won."""
    return insert_unique(db, models.Tag(name=name, organization_id=organization_id))


def search_tags(db: Session, query: str, organization_id: Optional[uuid.UUID], limit: int = 10) -> List[Tuple[models.Tag, int]]:
    usage = func.count(models.SnippetTag.snippet_id).label("usage_count")
    q = (
        db.query(models.Tag, usage)
        .outerjoin(models.SnippetTag, models.SnippetTag.tag_id == models.Tag.id)
        .filter(_scope_filter(organization_id))
    )
    if query:
        q = q.filter(func.lower(models.Tag.name).contains(query.lower(), autoescape=True))
    return (
        q.group_by(models.Tag.id)
        .order_by(usage.desc(), models.Tag.name.asc())
        .limit(limit)
        .all()
    )
