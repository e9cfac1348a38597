"""
Collection API endpoints: CRUD, membership and ordering.
"""
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from devsync.api.deps import get_current_user
from devsync.api.responses import respond
from devsync.db import models, schemas
from devsync.db.database import get_db
from devsync.services.common import parse_payload
from devsync.services.collection_service import CollectionService

router = APIRouter(prefix="/collections", tags=["collections"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_collection(
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(CollectionService(db).create(user.id, payload), status.HTTP_201_CREATED)


@router.get("")
def list_collections(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(CollectionService(db).list_for_user(user.id))


@router.get("/{collection_id}")
def get_collection(
    collection_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(CollectionService(db).get(collection_id, user.id))


@router.patch("/{collection_id}")
def update_collection(
    collection_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(CollectionService(db).update(collection_id, user.id, payload))


@router.delete("/{collection_id}")
def delete_collection(
    collection_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(CollectionService(db).delete(collection_id, user.id))


@router.post("/{collection_id}/snippets", status_code=status.HTTP_201_CREATED)
def add_snippet(
    collection_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entry, error = parse_payload(schemas.CollectionEntryCreate, payload)
    if error:
        return respond(error)
    result = CollectionService(db).add_snippet(collection_id, entry.snippet_id, user.id)
    return respond(result, status.HTTP_201_CREATED)


@router.delete("/{collection_id}/snippets/{snippet_id}")
def remove_snippet(
    collection_id: uuid.UUID,
    snippet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(CollectionService(db).remove_snippet(collection_id, snippet_id, user.id))


@router.post("/{collection_id}/snippets/{snippet_id}/move")
def move_snippet(
    collection_id: uuid.UUID,
    snippet_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Move a snippet one position; payload ``{"direction": "up" | "down"}``."""
    return respond(CollectionService(db).reorder(collection_id, snippet_id, payload.get("direction"), user.id))
