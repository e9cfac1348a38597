"""
Organization invitation repository functions.

An invitation counts as active until ``expires_at`` has passed; expired
rows stay in place until a re-invite overwrites them.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from devsync.db import models
from . import insert_unique


def get_invitation(db: Session, invitation_id: uuid.UUID) -> Optional[models.OrganizationInvitation]:
    return db.query(models.OrganizationInvitation).filter(models.OrganizationInvitation.id == invitation_id).first()


def get_invitation_by_token(db: Session, token: str) -> Optional[models.OrganizationInvitation]:
    return db.query(models.OrganizationInvitation).filter(models.OrganizationInvitation.token == token).first()


def get_invitation_for_email(db: Session, organization_id: uuid.UUID, email: str) -> Optional[models.OrganizationInvitation]:
    return (
        db.query(models.OrganizationInvitation)
        .filter(
            models.OrganizationInvitation.organization_id == organization_id,
            models.OrganizationInvitation.email == email,
        )
        .first()
    )


def list_active_invitations(db: Session, organization_id: uuid.UUID, now: datetime) -> List[models.OrganizationInvitation]:
    return (
        db.query(models.OrganizationInvitation)
        .filter(
            models.OrganizationInvitation.organization_id == organization_id,
            models.OrganizationInvitation.expires_at >= now,
        )
        .order_by(models.OrganizationInvitation.created_at.desc())
        .all()
    )


def count_active_invitations(
    db: Session,
    organization_id: uuid.UUID,
    now: datetime,
    exclude_invitation_id: Optional[uuid.UUID] = None,
) -> int:
    q = db.query(func.count(models.OrganizationInvitation.id)).filter(
        models.OrganizationInvitation.organization_id == organization_id,
        models.OrganizationInvitation.expires_at >= now,
    )
    if exclude_invitation_id is not None:
        q = q.filter(models.OrganizationInvitation.id != exclude_invitation_id)
    return q.scalar() or 0


def create_invitation(
    db: Session,
    *,
    organization_id: uuid.UUID,
    email: str,
    role: str,
    token: str,
    invited_by_user_id: uuid.UUID,
    expires_at: datetime,
) -> models.OrganizationInvitation:
    """Insert an invitation; raises UniqueViolation if (email, organization) exists."""
    invitation = models.OrganizationInvitation(
        organization_id=organization_id,
        email=email,
        role=role,
        token=token,
        invited_by_user_id=invited_by_user_id,
        expires_at=expires_at,
    )
    return insert_unique(db, invitation)


def refresh_invitation(
    db: Session,
    invitation: models.OrganizationInvitation,
    *,
    role: str,
    token: str,
    invited_by_user_id: uuid.UUID,
    expires_at: datetime,
    created_at: datetime,
) -> models.OrganizationInvitation:
    """Reissue an existing (expired) invitation row in place."""
    invitation.role = role
    invitation.token = token
    invitation.invited_by_user_id = invited_by_user_id
    invitation.expires_at = expires_at
    invitation.created_at = created_at
    db.flush()
    return invitation


def delete_invitation(db: Session, invitation: models.OrganizationInvitation) -> None:
    db.delete(invitation)
    db.flush()


def consume_invitation(db: Session, invitation_id: uuid.UUID) -> bool:
    """Delete an invitation by id; False when another request already removed it."""
    removed = (
        db.query(models.OrganizationInvitation)
        .filter(models.OrganizationInvitation.id == invitation_id)
        .delete(synchronize_session="fetch")
    )
    db.flush()
    return removed == 1
