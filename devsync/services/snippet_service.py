"""
Snippet service: create, edit, delete, read and list snippets.

A snippet's organization is fixed here; the only way into an organization
after creation is promotion (see promotion_service).
"""

import uuid
import logging
from typing import Any, Optional
from sqlalchemy.orm import Session

from devsync.audit import AuditAction, log_snippet
from devsync.db import models, schemas
from devsync.db.repositories import organizations as org_repo
from devsync.db.repositories import snippets as snippet_repo
from devsync.results import ErrorKind, Result, failure, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, not_found, parse_payload, unauthorized
from devsync.services.tag_service import TagService
from devsync.utils.scopes import (
    PERSONAL_FILTER,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    VISIBILITY_TEAM,
    visibility_allowed,
)
from devsync.utils.tags import normalize_tag

logger = logging.getLogger(__name__)

SNIPPET_NOT_FOUND = "Snippet not found"


def _visibility_error(visibility: str, organization_id) -> str:
    if visibility == VISIBILITY_TEAM:
        return "Team visibility requires an organization"
    if visibility == VISIBILITY_PUBLIC and organization_id is not None:
        return "Public visibility is only available for personal snippets"
    return "Invalid visibility"


def serialize_snippet(snippet: models.Snippet, tags=None) -> schemas.Snippet:
    return schemas.Snippet(
        id=snippet.id,
        user_id=snippet.user_id,
        organization_id=snippet.organization_id,
        title=snippet.title,
        description=snippet.description,
        code=snippet.code,
        language=snippet.language,
        visibility=snippet.visibility,
        tags=list(tags or []),
        created_at=snippet.created_at,
        updated_at=snippet.updated_at,
    )


class SnippetService:
    """Service class for snippet operations."""

    def __init__(self, db: Session, tag_service: Optional[TagService] = None):
        self.db = db
        self.policy = AccessPolicy(db)
        self.tags = tag_service or TagService(db)

    def _link_tags(self, snippet: models.Snippet, names) -> None:
        for tag in self.tags.resolve_many(names, snippet.organization_id):
            snippet_repo.link_tag(self.db, snippet.id, tag.id)

    @guarded
    def create(self, user_id: uuid.UUID, data: Any) -> Result:
        payload, error = parse_payload(schemas.SnippetCreate, data)
        if error:
            return error

        organization_id = payload.organization_id
        if organization_id is not None:
            if org_repo.get_organization(self.db, organization_id) is None:
                return not_found("Organization not found")
            if not self.policy.is_member(user_id, organization_id):
                return unauthorized("You are not a member of this organization")

        visibility = payload.visibility or VISIBILITY_PRIVATE
        if not visibility_allowed(visibility, organization_id):
            return failure(ErrorKind.VALIDATION_ERROR, _visibility_error(visibility, organization_id))

        snippet = snippet_repo.create_snippet(
            self.db,
            user_id=user_id,
            organization_id=organization_id,
            title=payload.title,
            description=payload.description,
            code=payload.code,
            language=payload.language,
            visibility=visibility,
        )
        self._link_tags(snippet, payload.tags)
        log_snippet(
            self.db,
            actor_user_id=user_id,
            organization_id=organization_id,
            snippet_id=snippet.id,
            action=AuditAction.SNIPPET_CREATE,
            metadata={"title": snippet.title, "visibility": visibility},
        )
        self.db.commit()
        self.db.refresh(snippet)
        return success(serialize_snippet(snippet, snippet_repo.list_tag_names(self.db, snippet.id)))

    @guarded
    def update(self, snippet_id: uuid.UUID, user_id: uuid.UUID, data: Any) -> Result:
        snippet = snippet_repo.get_snippet(self.db, snippet_id)
        if snippet is None:
            return not_found(SNIPPET_NOT_FOUND)
        if not self.policy.can_modify_snippet(user_id, snippet):
            return unauthorized()

        payload, error = parse_payload(schemas.SnippetUpdate, data)
        if error:
            return error

        if payload.visibility is not None and payload.visibility != snippet.visibility:
            if snippet.organization_id is None:
                return failure(ErrorKind.VALIDATION_ERROR, "Visibility can only be changed for organization snippets")
            if not visibility_allowed(payload.visibility, snippet.organization_id):
                return failure(ErrorKind.VALIDATION_ERROR, _visibility_error(payload.visibility, snippet.organization_id))
            snippet.visibility = payload.visibility

        for field in ("title", "code", "language"):
            value = getattr(payload, field)
            if value is not None:
                setattr(snippet, field, value)
        # An explicit null clears the description
        if "description" in payload.model_fields_set:
            snippet.description = payload.description

        if payload.tags is not None:
            snippet_repo.clear_tags(self.db, snippet.id)
            self._link_tags(snippet, payload.tags)

        log_snippet(
            self.db,
            actor_user_id=user_id,
            organization_id=snippet.organization_id,
            snippet_id=snippet.id,
            action=AuditAction.SNIPPET_UPDATE,
            metadata={"fields": sorted(payload.model_dump(exclude_unset=True).keys())},
        )
        self.db.commit()
        self.db.refresh(snippet)
        return success(serialize_snippet(snippet, snippet_repo.list_tag_names(self.db, snippet.id)))

    @guarded
    def delete(self, snippet_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        snippet = snippet_repo.get_snippet(self.db, snippet_id)
        if snippet is None:
            return not_found(SNIPPET_NOT_FOUND)
        if not self.policy.can_modify_snippet(user_id, snippet):
            return unauthorized()
        log_snippet(
            self.db,
            actor_user_id=user_id,
            organization_id=snippet.organization_id,
            snippet_id=snippet.id,
            action=AuditAction.SNIPPET_DELETE,
            metadata={"title": snippet.title},
        )
        snippet_repo.delete_snippet(self.db, snippet)
        self.db.commit()
        return success({"id": snippet_id})

    @guarded
    def get(self, snippet_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> Result:
        snippet = snippet_repo.get_snippet(self.db, snippet_id)
        if snippet is None:
            return not_found(SNIPPET_NOT_FOUND)
        if not self.policy.can_access_snippet(user_id, snippet):
            return unauthorized("You don't have access to this snippet")
        return success(serialize_snippet(snippet, snippet_repo.list_tag_names(self.db, snippet.id)))

    @guarded
    def list_visible(self, user_id: uuid.UUID, organization_filter: Optional[str] = None, tag: Optional[str] = None) -> Result:
        """List the user's dashboard snippets.

        ``organization_filter`` is None for everything, ``"personal"`` for
        personal snippets only, or an organization slug.
        """
        organization_ids = org_repo.member_organization_ids(self.db, user_id)
        personal_only = False
        organization_id = None
        if organization_filter == PERSONAL_FILTER:
            personal_only = True
        elif organization_filter:
            organization = org_repo.get_organization_by_slug(self.db, organization_filter)
            if organization is None or organization.id not in organization_ids:
                return success([])
            organization_id = organization.id

        snippets = snippet_repo.list_visible(
            self.db,
            user_id,
            organization_ids,
            personal_only=personal_only,
            organization_id=organization_id,
            tag=normalize_tag(tag) or None,
        )
        tag_map = snippet_repo.tag_names_by_snippet(self.db, [s.id for s in snippets])
        return success([serialize_snippet(s, tag_map.get(s.id, [])) for s in snippets])
