"""
Snippet repository functions.

Includes the tag association helpers and the visibility-filtered listing
query used by the dashboard.
"""
from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional
from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from devsync.db import models
from devsync.utils.scopes import VISIBILITY_PRIVATE, VISIBILITY_TEAM


def get_snippet(db: Session, snippet_id: uuid.UUID) -> Optional[models.Snippet]:
    return db.query(models.Snippet).filter(models.Snippet.id == snippet_id).first()


def create_snippet(
    db: Session,
    *,
    user_id: uuid.UUID,
    title: str,
    code: str,
    language: str,
    description: Optional[str] = None,
    organization_id: Optional[uuid.UUID] = None,
    visibility: str = VISIBILITY_PRIVATE,
) -> models.Snippet:
    snippet = models.Snippet(
        user_id=user_id,
        organization_id=organization_id,
        title=title,
        description=description,
        code=code,
        language=language,
        visibility=visibility,
    )
    db.add(snippet)
    db.flush()
    return snippet


def delete_snippet(db: Session, snippet: models.Snippet) -> None:
    db.delete(snippet)
    db.flush()


def claim_for_organization(db: Session, snippet_id: uuid.UUID, organization_id: uuid.UUID, visibility: str) -> bool:
    """Move a personal snippet into an organization.

    Conditional on the snippet still being personal, so of two concurrent
    promotions only one can succeed. Returns whether the row was claimed.
    """
    updated = (
        db.query(models.Snippet)
        .filter(models.Snippet.id == snippet_id, models.Snippet.organization_id.is_(None))
        .update(
            {models.Snippet.organization_id: organization_id, models.Snippet.visibility: visibility},
            synchronize_session="fetch",
        )
    )
    db.flush()
    return updated == 1


def list_tag_names(db: Session, snippet_id: uuid.UUID) -> List[str]:
    rows = (
        db.query(models.Tag.name)
        .join(models.SnippetTag, models.SnippetTag.tag_id == models.Tag.id)
        .filter(models.SnippetTag.snippet_id == snippet_id)
        .order_by(models.Tag.name.asc())
        .all()
    )
    return [row[0] for row in rows]


def tag_names_by_snippet(db: Session, snippet_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, List[str]]:
    ids = list(snippet_ids)
    result: Dict[uuid.UUID, List[str]] = defaultdict(list)
    if not ids:
        return result
    rows = (
        db.query(models.SnippetTag.snippet_id, models.Tag.name)
        .join(models.Tag, models.Tag.id == models.SnippetTag.tag_id)
        .filter(models.SnippetTag.snippet_id.in_(ids))
        .order_by(models.Tag.name.asc())
        .all()
    )
    for snippet_id, name in rows:
        result[snippet_id].append(name)
    return result


def clear_tags(db: Session, snippet_id: uuid.UUID) -> int:
    removed = (
        db.query(models.SnippetTag)
        .filter(models.SnippetTag.snippet_id == snippet_id)
        .delete(synchronize_session=False)
    )
    db.flush()
    return removed


def link_tag(db: Session, snippet_id: uuid.UUID, tag_id: uuid.UUID) -> models.SnippetTag:
    link = models.SnippetTag(snippet_id=snippet_id, tag_id=tag_id)
    db.add(link)
    db.flush()
    return link


def list_visible(
    db: Session,
    user_id: uuid.UUID,
    organization_ids: List[uuid.UUID],
    *,
    personal_only: bool = False,
    organization_id: Optional[uuid.UUID] = None,
    tag: Optional[str] = None,
) -> List[models.Snippet]:
    """Snippets ``user_id`` may list on the dashboard.

    Personal snippets of the user, plus team snippets and the user's own
    private snippets in each organization in ``organization_ids``.
    """
    personal = and_(models.Snippet.user_id == user_id, models.Snippet.organization_id.is_(None))
    org_visible = or_(
        models.Snippet.visibility == VISIBILITY_TEAM,
        and_(models.Snippet.user_id == user_id, models.Snippet.visibility == VISIBILITY_PRIVATE),
    )

    q = db.query(models.Snippet)
    if personal_only:
        q = q.filter(personal)
    elif organization_id is not None:
        q = q.filter(models.Snippet.organization_id == organization_id, org_visible)
    elif organization_ids:
        q = q.filter(or_(personal, and_(models.Snippet.organization_id.in_(organization_ids), org_visible)))
    else:
        q = q.filter(personal)

    if tag:
        tagged = (
            select(models.SnippetTag.snippet_id)
            .join(models.Tag, models.Tag.id == models.SnippetTag.tag_id)
            .where(models.Tag.name == tag)
        )
        q = q.filter(models.Snippet.id.in_(tagged))

    return q.order_by(models.Snippet.updated_at.desc(), models.Snippet.created_at.desc()).all()
