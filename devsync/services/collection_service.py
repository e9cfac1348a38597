"""
Collection service: collection CRUD and ordered snippet membership.

Entries keep a dense zero-based ``order``. Appends take ``max + 1``; removals
may leave gaps, which the next reorder repairs by renumbering every entry of
the collection in one transaction.
"""

import uuid
import logging
from typing import Any, Optional
from sqlalchemy.orm import Session

from devsync.audit import AuditAction, log_collection
from devsync.db import models, schemas
from devsync.db.repositories import UniqueViolation
from devsync.db.repositories import collections as collection_repo
from devsync.db.repositories import organizations as org_repo
from devsync.db.repositories import snippets as snippet_repo
from devsync.results import ErrorKind, Result, failure, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, not_found, parse_payload, unauthorized

logger = logging.getLogger(__name__)

COLLECTION_NOT_FOUND = "Collection not found"
ALREADY_IN_COLLECTION = "Snippet is already in this collection"
NOT_IN_COLLECTION = "Snippet is not in this collection"


def serialize_collection(collection: models.Collection) -> schemas.Collection:
    return schemas.Collection.model_validate(collection)


class CollectionService:
    """Service class for collections and their ordering."""

    def __init__(self, db: Session):
        self.db = db
        self.policy = AccessPolicy(db)

    def _load_accessible(self, collection_id: uuid.UUID, user_id: uuid.UUID):
        collection = collection_repo.get_collection(self.db, collection_id)
        if collection is None:
            return None, not_found(COLLECTION_NOT_FOUND)
        if not self.policy.can_access_collection(user_id, collection):
            return None, unauthorized()
        return collection, None

    def _load_owned(self, collection_id: uuid.UUID, user_id: uuid.UUID):
        collection = collection_repo.get_collection(self.db, collection_id)
        if collection is None:
            return None, not_found(COLLECTION_NOT_FOUND)
        if not self.policy.can_modify_collection(user_id, collection):
            return None, unauthorized()
        return collection, None

    # === CRUD ===

    @guarded
    def create(self, user_id: uuid.UUID, data: Any) -> Result:
        payload, error = parse_payload(schemas.CollectionCreate, data)
        if error:
            return error
        if payload.organization_id is not None:
            if org_repo.get_organization(self.db, payload.organization_id) is None:
                return not_found("Organization not found")
            if not self.policy.is_member(user_id, payload.organization_id):
                return unauthorized("You are not a member of this organization")

        collection = collection_repo.create_collection(
            self.db,
            user_id=user_id,
            name=payload.name,
            description=payload.description,
            organization_id=payload.organization_id,
        )
        log_collection(
            self.db,
            actor_user_id=user_id,
            organization_id=collection.organization_id,
            collection_id=collection.id,
            action=AuditAction.COLLECTION_CREATE,
            metadata={"name": collection.name},
        )
        self.db.commit()
        self.db.refresh(collection)
        return success(serialize_collection(collection))

    @guarded
    def update(self, collection_id: uuid.UUID, user_id: uuid.UUID, data: Any) -> Result:
        collection, error = self._load_owned(collection_id, user_id)
        if error:
            return error
        payload, error = parse_payload(schemas.CollectionUpdate, data)
        if error:
            return error
        collection.name = payload.name
        collection.description = payload.description
        log_collection(
            self.db,
            actor_user_id=user_id,
            organization_id=collection.organization_id,
            collection_id=collection.id,
            action=AuditAction.COLLECTION_UPDATE,
            metadata={"name": collection.name},
        )
        self.db.commit()
        self.db.refresh(collection)
        return success(serialize_collection(collection))

    @guarded
    def delete(self, collection_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        collection, error = self._load_owned(collection_id, user_id)
        if error:
            return error
        log_collection(
            self.db,
            actor_user_id=user_id,
            organization_id=collection.organization_id,
            collection_id=collection.id,
            action=AuditAction.COLLECTION_DELETE,
            metadata={"name": collection.name},
        )
        collection_repo.delete_collection(self.db, collection)
        self.db.commit()
        return success({"id": collection_id})

    @guarded
    def get(self, collection_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        collection, error = self._load_accessible(collection_id, user_id)
        if error:
            return error
        entries = [
            schemas.CollectionEntry(
                snippet_id=snippet.id,
                title=snippet.title,
                order=entry.order,
                added_at=entry.added_at,
            )
            for entry, snippet in collection_repo.list_entries_with_snippets(self.db, collection.id)
            # Shared collections may hold another member's private snippet
            if self.policy.can_access_snippet(user_id, snippet)
        ]
        detail = schemas.CollectionDetail(**serialize_collection(collection).model_dump(), snippets=entries)
        return success(detail)

    @guarded
    def list_for_user(self, user_id: uuid.UUID) -> Result:
        organization_ids = org_repo.member_organization_ids(self.db, user_id)
        collections = collection_repo.list_collections_for_user(self.db, user_id, organization_ids)
        return success([serialize_collection(c) for c in collections])

    # === Membership and ordering ===

    @guarded
    def add_snippet(self, collection_id: uuid.UUID, snippet_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        collection, error = self._load_accessible(collection_id, user_id)
        if error:
            return error
        snippet = snippet_repo.get_snippet(self.db, snippet_id)
        if snippet is None:
            return not_found("Snippet not found")
        if not self.policy.can_access_snippet(user_id, snippet):
            return unauthorized()
        if snippet.organization_id != collection.organization_id:
            return failure(
                ErrorKind.CROSS_CONTEXT,
                "Snippets can only be added to collections in the same workspace",
            )
        if collection_repo.get_entry(self.db, collection.id, snippet.id) is not None:
            return failure(ErrorKind.ALREADY_EXISTS, ALREADY_IN_COLLECTION)

        current_max = collection_repo.max_order(self.db, collection.id)
        order = 0 if current_max is None else current_max + 1
        try:
            collection_repo.add_entry(self.db, collection_id=collection.id, snippet_id=snippet.id, order=order)
        except UniqueViolation:
            self.db.rollback()
            return failure(ErrorKind.ALREADY_EXISTS, ALREADY_IN_COLLECTION)
        self.db.commit()
        return success({"collection_id": collection_id, "snippet_id": snippet_id, "order": order})

    @guarded
    def remove_snippet(self, collection_id: uuid.UUID, snippet_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        collection, error = self._load_accessible(collection_id, user_id)
        if error:
            return error
        entry = collection_repo.get_entry(self.db, collection.id, snippet_id)
        if entry is None:
            return failure(ErrorKind.NOT_IN_COLLECTION, NOT_IN_COLLECTION)
        collection_repo.delete_entry(self.db, entry)
        self.db.commit()
        return success({"collection_id": collection_id, "snippet_id": snippet_id})

    @guarded
    def reorder(self, collection_id: uuid.UUID, snippet_id: uuid.UUID, direction: Any, user_id: uuid.UUID) -> Result:
        """Move a snippet one position up or down.

        All entries are renumbered to their array index (with the two swapped
        entries exchanging places) and written in a single commit, which also
        closes any gaps left behind by earlier removals.
        """
        move, error = parse_payload(schemas.CollectionMove, {"direction": direction})
        if error:
            return error
        collection, error = self._load_accessible(collection_id, user_id)
        if error:
            return error

        entries = collection_repo.list_entries(self.db, collection.id, for_update=True)
        current_index: Optional[int] = next(
            (index for index, entry in enumerate(entries) if entry.snippet_id == snippet_id),
            None,
        )
        if current_index is None:
            self.db.rollback()
            return failure(ErrorKind.NOT_IN_COLLECTION, NOT_IN_COLLECTION)

        new_index = current_index - 1 if move.direction == schemas.MOVE_UP else current_index + 1
        if new_index < 0 or new_index >= len(entries):
            self.db.rollback()
            edge = "top" if move.direction == schemas.MOVE_UP else "bottom"
            return failure(ErrorKind.BOUNDARY, f"Snippet is already at the {edge} of the collection")

        entries[current_index], entries[new_index] = entries[new_index], entries[current_index]
        for position, entry in enumerate(entries):
            entry.order = position
        ordered_ids = [entry.snippet_id for entry in entries]
        self.db.commit()
        return success({"collection_id": collection_id, "order": ordered_ids})
