"""
Role hierarchy and visibility decisions.

The pure functions decide from already-loaded facts; ``AccessPolicy`` looks the
facts up (membership roles) for a given acting user. Neither writes anything.
"""
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from devsync.db import models
from devsync.db.repositories import organizations as org_repo
from devsync.utils.role_permissions import ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER, role_satisfies
from devsync.utils.scopes import VISIBILITY_PUBLIC, VISIBILITY_PRIVATE, VISIBILITY_TEAM


def snippet_readable(snippet, user_id: Optional[uuid.UUID], is_org_member: bool) -> bool:
    """Read rule for a snippet.

    Public snippets are readable by anyone. Personal snippets and private
    organization snippets only by their creator. Team snippets by any member of
    the owning organization.
    """
    if snippet.visibility == VISIBILITY_PUBLIC:
        return True
    if user_id is None:
        return False
    if snippet.organization_id is None or snippet.visibility == VISIBILITY_PRIVATE:
        return snippet.user_id == user_id
    if snippet.visibility == VISIBILITY_TEAM:
        return is_org_member
    return False


def snippet_writable(snippet, user_id: Optional[uuid.UUID]) -> bool:
    # Only the creator writes; organization roles grant no rights over others' snippets
    return user_id is not None and snippet.user_id == user_id


def collection_accessible(collection, user_id: Optional[uuid.UUID], is_org_member: bool) -> bool:
    if user_id is None:
        return False
    if collection.organization_id is None:
        return collection.user_id == user_id
    return is_org_member


class AccessPolicy:
    """Membership-backed permission queries for one database session."""

    def __init__(self, db: Session, repository=org_repo):
        self.db = db
        self.repo = repository

    def role_in(self, organization_id: Optional[uuid.UUID], user_id: Optional[uuid.UUID]) -> Optional[str]:
        if organization_id is None or user_id is None:
            return None
        return self.repo.get_member_role(self.db, organization_id, user_id)

    def has_permission(self, user_id: Optional[uuid.UUID], organization_id: Optional[uuid.UUID], required_role: str) -> bool:
        return role_satisfies(self.role_in(organization_id, user_id), required_role)

    def is_member(self, user_id, organization_id) -> bool:
        return self.has_permission(user_id, organization_id, ROLE_MEMBER)

    def is_admin(self, user_id, organization_id) -> bool:
        return self.has_permission(user_id, organization_id, ROLE_ADMIN)

    def is_owner(self, user_id, organization_id) -> bool:
        return self.has_permission(user_id, organization_id, ROLE_OWNER)

    def can_access_snippet(self, user_id: Optional[uuid.UUID], snippet: models.Snippet) -> bool:
        # Membership is only looked up when the visibility rule needs it
        needs_membership = (
            snippet.visibility == VISIBILITY_TEAM
            and snippet.organization_id is not None
        )
        is_member = self.is_member(user_id, snippet.organization_id) if needs_membership else False
        return snippet_readable(snippet, user_id, is_member)

    def can_modify_snippet(self, user_id: Optional[uuid.UUID], snippet: models.Snippet) -> bool:
        return snippet_writable(snippet, user_id)

    def can_access_collection(self, user_id: Optional[uuid.UUID], collection: models.Collection) -> bool:
        is_member = self.is_member(user_id, collection.organization_id) if collection.organization_id else False
        return collection_accessible(collection, user_id, is_member)

    def can_modify_collection(self, user_id: Optional[uuid.UUID], collection: models.Collection) -> bool:
        return user_id is not None and collection.user_id == user_id
