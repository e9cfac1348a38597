"""
Audit logging helpers and enums.

Centralized helper to stage normalized audit records with a consistent schema.
Rows are flushed, not committed: they become durable together with the
mutation they describe.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from devsync.db import schemas
from devsync.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Organization
    ORGANIZATION_CREATE = "organization_create"
    ORGANIZATION_UPDATE = "organization_update"
    ORGANIZATION_DELETE = "organization_delete"
    OWNERSHIP_TRANSFER = "ownership_transfer"
    # Membership
    MEMBER_REMOVE = "member_remove"
    MEMBER_ROLE_CHANGE = "member_role_change"
    # Invitations
    INVITATION_CREATE = "invitation_create"
    INVITATION_REVOKE = "invitation_revoke"
    INVITATION_ACCEPT = "invitation_accept"
    INVITATION_DECLINE = "invitation_decline"
    # Snippet
    SNIPPET_CREATE = "snippet_create"
    SNIPPET_UPDATE = "snippet_update"
    SNIPPET_DELETE = "snippet_delete"
    SNIPPET_PROMOTE = "snippet_promote"
    # Collection
    COLLECTION_CREATE = "collection_create"
    COLLECTION_UPDATE = "collection_update"
    COLLECTION_DELETE = "collection_delete"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    organization_id: Optional[uuid.UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper."""
    # Ensure we persist pure string values, not Enum reprs (avoid 'AuditAction.XYZ')
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(
        db,
        audit_log=audit_log,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
    )


def log_organization(db: Session, *, actor_user_id: uuid.UUID, organization_id: Optional[uuid.UUID], action: AuditAction, target_id: Optional[uuid.UUID] = None, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="organization",
        target_id=target_id or organization_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata=metadata,
    )


def log_invitation(db: Session, *, actor_user_id: uuid.UUID, organization_id: uuid.UUID, invitation_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="invitation",
        target_id=invitation_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata=metadata,
    )


def log_snippet(db: Session, *, actor_user_id: uuid.UUID, organization_id: Optional[uuid.UUID], snippet_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="snippet",
        target_id=snippet_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata=metadata,
    )


def log_collection(db: Session, *, actor_user_id: uuid.UUID, organization_id: Optional[uuid.UUID], collection_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="collection",
        target_id=collection_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata=metadata,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "log_organization", "log_invitation", "log_snippet", "log_collection"]
