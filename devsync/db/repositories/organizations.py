"""
Organization repository functions.

Lookups for organizations and memberships; membership counts feed the
subscription limits.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from devsync.db import models
from devsync.utils.role_permissions import ROLE_OWNER
from . import insert_unique


def get_organization(db: Session, organization_id: uuid.UUID) -> Optional[models.Organization]:
    return db.query(models.Organization).filter(models.Organization.id == organization_id).first()


def get_organization_by_slug(db: Session, slug: str) -> Optional[models.Organization]:
    return db.query(models.Organization).filter(models.Organization.slug == slug).first()


def slug_taken(db: Session, slug: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    q = db.query(models.Organization.id).filter(models.Organization.slug == slug)
    if exclude_id is not None:
        q = q.filter(models.Organization.id != exclude_id)
    return q.first() is not None


def create_organization(db: Session, *, name: str, slug: str, created_by: uuid.UUID) -> models.Organization:
    """Insert an organization; raises UniqueViolation when the slug is taken."""
    organization = models.Organization(name=name, slug=slug, created_by=created_by)
    return insert_unique(db, organization)


def delete_organization(db: Session, organization: models.Organization) -> None:
    db.delete(organization)
    db.flush()


def list_memberships_for_user(db: Session, user_id: uuid.UUID) -> List[Tuple[models.OrganizationMembership, models.Organization]]:
    return (
        db.query(models.OrganizationMembership, models.Organization)
        .join(models.Organization, models.Organization.id == models.OrganizationMembership.organization_id)
        .filter(models.OrganizationMembership.user_id == user_id)
        .order_by(models.Organization.name.asc())
        .all()
    )


def member_organization_ids(db: Session, user_id: uuid.UUID) -> List[uuid.UUID]:
    rows = (
        db.query(models.OrganizationMembership.organization_id)
        .filter(models.OrganizationMembership.user_id == user_id)
        .all()
    )
    return [row[0] for row in rows]


def get_membership(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.OrganizationMembership]:
    return (
        db.query(models.OrganizationMembership)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            models.OrganizationMembership.user_id == user_id,
        )
        .first()
    )


def get_member_role(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID) -> Optional[str]:
    row = (
        db.query(models.OrganizationMembership.role)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            models.OrganizationMembership.user_id == user_id,
        )
        .first()
    )
    return row[0] if row else None


def list_members(db: Session, organization_id: uuid.UUID) -> List[Tuple[models.OrganizationMembership, models.User]]:
    return (
        db.query(models.OrganizationMembership, models.User)
        .join(models.User, models.User.id == models.OrganizationMembership.user_id)
        .filter(models.OrganizationMembership.organization_id == organization_id)
        .order_by(models.OrganizationMembership.joined_at.asc())
        .all()
    )


def count_members(db: Session, organization_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.OrganizationMembership.user_id))
        .filter(models.OrganizationMembership.organization_id == organization_id)
        .scalar()
    ) or 0


def get_owner_membership(db: Session, organization_id: uuid.UUID) -> Optional[models.OrganizationMembership]:
    return (
        db.query(models.OrganizationMembership)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            models.OrganizationMembership.role == ROLE_OWNER,
        )
        .order_by(models.OrganizationMembership.joined_at.asc())
        .first()
    )


def count_owned_organizations(db: Session, user_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.OrganizationMembership.organization_id))
        .filter(
            models.OrganizationMembership.user_id == user_id,
            models.OrganizationMembership.role == ROLE_OWNER,
        )
        .scalar()
    ) or 0


def is_member_email(db: Session, organization_id: uuid.UUID, email: str) -> bool:
    row = (
        db.query(models.OrganizationMembership.user_id)
        .join(models.User, models.User.id == models.OrganizationMembership.user_id)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            func.lower(models.User.email) == email.strip().lower(),
        )
        .first()
    )
    return row is not None


def add_membership(db: Session, *, organization_id: uuid.UUID, user_id: uuid.UUID, role: str) -> models.OrganizationMembership:
    """Insert a membership; raises UniqueViolation if the user already belongs."""
    membership = models.OrganizationMembership(organization_id=organization_id, user_id=user_id, role=role)
    return insert_unique(db, membership)


def delete_membership(db: Session, membership: models.OrganizationMembership) -> None:
    db.delete(membership)
    db.flush()


def change_member_role(
    db: Session,
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    role: str,
    expected_role: Optional[str] = None,
) -> bool:
    """Set a member's role, optionally only if it currently equals ``expected_role``.

    Returns whether a row was changed; the conditional form lets a concurrent
    role change make this one a no-op instead of overwriting it.
    """
    q = db.query(models.OrganizationMembership).filter(
        models.OrganizationMembership.organization_id == organization_id,
        models.OrganizationMembership.user_id == user_id,
    )
    if expected_role is not None:
        q = q.filter(models.OrganizationMembership.role == expected_role)
    updated = q.update({models.OrganizationMembership.role: role}, synchronize_session="fetch")
    db.flush()
    return updated == 1
