"""
Snippet promotion: the one-way move of a personal snippet into an organization.

Promotion is a single transaction. It claims the snippet for the organization
(only possible while it is still personal), drops it from every personal
collection, and rebinds its tags to the organization's namespace. A snippet
that already belongs to an organization can never be moved again.
"""

import uuid
import logging
from typing import Any, Optional
from sqlalchemy.orm import Session

from devsync.audit import AuditAction, log_snippet
from devsync.db import schemas
from devsync.db.repositories import collections as collection_repo
from devsync.db.repositories import organizations as org_repo
from devsync.db.repositories import snippets as snippet_repo
from devsync.results import ErrorKind, Failure, Result, failure, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, not_found, parse_payload, unauthorized
from devsync.services.snippet_service import serialize_snippet
from devsync.services.tag_service import TagService

logger = logging.getLogger(__name__)

ALREADY_ORGANIZATIONAL = "This snippet already belongs to an organization and cannot be moved"


def _cross_context() -> Failure:
    return failure(ErrorKind.CROSS_CONTEXT, ALREADY_ORGANIZATIONAL)


class PromotionService:
    """Moves snippets from personal scope into an organization."""

    def __init__(self, db: Session, tag_service: Optional[TagService] = None):
        self.db = db
        self.policy = AccessPolicy(db)
        self.tags = tag_service or TagService(db)

    @guarded
    def promote(self, snippet_id: uuid.UUID, acting_user_id: uuid.UUID, data: Any) -> Result:
        payload, error = parse_payload(schemas.SnippetPromote, data)
        if error:
            return error

        snippet = snippet_repo.get_snippet(self.db, snippet_id)
        if snippet is None:
            return not_found("Snippet not found")
        if not self.policy.can_modify_snippet(acting_user_id, snippet):
            return unauthorized("Only the snippet's creator can move it")
        if snippet.organization_id is not None:
            return _cross_context()

        organization = org_repo.get_organization(self.db, payload.organization_id)
        if organization is None:
            return not_found("Organization not found")
        if not self.policy.is_member(acting_user_id, organization.id):
            return unauthorized("You are not a member of this organization")

        tag_names = snippet_repo.list_tag_names(self.db, snippet.id)

        if not snippet_repo.claim_for_organization(self.db, snippet.id, organization.id, payload.visibility):
            # Lost a race with another promotion of the same snippet
            self.db.rollback()
            return _cross_context()

        detached = collection_repo.detach_from_personal_collections(self.db, snippet.id)
        snippet_repo.clear_tags(self.db, snippet.id)
        for tag in self.tags.resolve_many(tag_names, organization.id):
            snippet_repo.link_tag(self.db, snippet.id, tag.id)

        log_snippet(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=organization.id,
            snippet_id=snippet.id,
            action=AuditAction.SNIPPET_PROMOTE,
            metadata={
                "visibility": payload.visibility,
                "collections_detached": detached,
                "tags": tag_names,
            },
        )
        self.db.commit()
        logger.info(
            "Snippet %s promoted to organization %s (%d personal collection entries removed)",
            snippet.id, organization.id, detached,
        )
        self.db.refresh(snippet)
        return success(serialize_snippet(snippet, snippet_repo.list_tag_names(self.db, snippet.id)))
