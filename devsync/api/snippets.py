"""
Snippet API endpoints, including promotion into an organization.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from devsync.api.deps import get_current_user, get_current_user_or_guest
from devsync.api.responses import respond
from devsync.db import models
from devsync.db.database import get_db
from devsync.services.promotion_service import PromotionService
from devsync.services.snippet_service import SnippetService

router = APIRouter(prefix="/snippets", tags=["snippets"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_snippet(
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(SnippetService(db).create(user.id, payload), status.HTTP_201_CREATED)


@router.get("")
def list_snippets(
    organization: Optional[str] = Query(default=None, description="'personal' or an organization slug"),
    tag: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(SnippetService(db).list_visible(user.id, organization, tag))


@router.get("/{snippet_id}")
def get_snippet(
    snippet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: Optional[models.User] = Depends(get_current_user_or_guest),
):
    # guests reach PUBLIC snippets through share links
    return respond(SnippetService(db).get(snippet_id, user.id if user else None))


@router.patch("/{snippet_id}")
def update_snippet(
    snippet_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(SnippetService(db).update(snippet_id, user.id, payload))


@router.delete("/{snippet_id}")
def delete_snippet(
    snippet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(SnippetService(db).delete(snippet_id, user.id))


@router.post("/{snippet_id}/promote")
def promote_snippet(
    snippet_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Move a personal snippet into an organization (irreversible)."""
    return respond(PromotionService(db).promote(snippet_id, user.id, payload))
