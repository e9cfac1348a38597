"""
Organization administration: workspace lifecycle, members and ownership.

Every operation resolves the acting user's role first. Role changes that
touch the OWNER are written as conditional updates inside one transaction, so
an organization is never observed with zero or two owners.
"""

import uuid
import logging
from typing import Any, Optional, Union
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from devsync.audit import AuditAction, log_organization
from devsync.db import schemas
from devsync.db.repositories import UniqueViolation
from devsync.db.repositories import organizations as org_repo
from devsync.results import ErrorKind, Result, failure, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, not_found, parse_payload, unauthorized
from devsync.services.subscription_service import WORKSPACE_LIMIT_MESSAGE, SubscriptionService
from devsync.utils.role_permissions import ROLE_ADMIN, ROLE_OWNER
from devsync.utils.slugs import SLUG_MIN_LENGTH, generate_slug, slug_candidates

logger = logging.getLogger(__name__)

ORGANIZATION_NOT_FOUND = "Organization not found"
MEMBER_NOT_FOUND = "Member not found"
SLUG_TAKEN = "This slug is already taken"
OWNER_ONLY_ROLES = "Only the organization owner can change member roles"


def _parse_uuid(value: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class OrganizationService:
    """Service class for organizations and their memberships."""

    def __init__(self, db: Session, subscription_service: Optional[SubscriptionService] = None):
        self.db = db
        self.policy = AccessPolicy(db)
        self.subscriptions = subscription_service or SubscriptionService(db)

    # === Lifecycle ===

    @guarded
    def create(self, acting_user_id: uuid.UUID, data: Any) -> Result:
        payload, error = parse_payload(schemas.OrganizationCreate, data)
        if error:
            return error
        if not self.subscriptions.can_create_workspace(acting_user_id):
            return failure(ErrorKind.LIMIT_REACHED, WORKSPACE_LIMIT_MESSAGE)

        base = generate_slug(payload.name)
        if len(base) < SLUG_MIN_LENGTH:
            return failure(ErrorKind.VALIDATION_ERROR, "Name must contain at least 2 letters or numbers")

        organization = None
        for candidate in slug_candidates(base):
            if org_repo.slug_taken(self.db, candidate):
                continue
            try:
                organization = org_repo.create_organization(
                    self.db, name=payload.name, slug=candidate, created_by=acting_user_id
                )
                break
            except UniqueViolation:
                logger.debug("Slug %r claimed concurrently; trying next candidate", candidate)
        if organization is None:
            return failure(ErrorKind.CONFLICT, SLUG_TAKEN)

        org_repo.add_membership(self.db, organization_id=organization.id, user_id=acting_user_id, role=ROLE_OWNER)
        log_organization(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=organization.id,
            action=AuditAction.ORGANIZATION_CREATE,
            metadata={"name": organization.name, "slug": organization.slug},
        )
        self.db.commit()
        self.db.refresh(organization)
        logger.info("Organization %s (%s) created by %s", organization.id, organization.slug, acting_user_id)
        return success(schemas.Organization.model_validate(organization))

    @guarded
    def update(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID, data: Any) -> Result:
        organization = org_repo.get_organization(self.db, organization_id)
        if organization is None:
            return not_found(ORGANIZATION_NOT_FOUND)
        if not self.policy.is_admin(acting_user_id, organization_id):
            return unauthorized("You don't have permission to update this organization")
        payload, error = parse_payload(schemas.OrganizationUpdate, data)
        if error:
            return error

        changes = {}
        if payload.slug is not None and payload.slug != organization.slug:
            if org_repo.slug_taken(self.db, payload.slug, exclude_id=organization.id):
                return failure(ErrorKind.CONFLICT, SLUG_TAKEN)
            changes["slug"] = {"old": organization.slug, "new": payload.slug}
            organization.slug = payload.slug
        if payload.name is not None and payload.name != organization.name:
            changes["name"] = {"old": organization.name, "new": payload.name}
            organization.name = payload.name

        if changes:
            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                return failure(ErrorKind.CONFLICT, SLUG_TAKEN)
            log_organization(
                self.db,
                actor_user_id=acting_user_id,
                organization_id=organization.id,
                action=AuditAction.ORGANIZATION_UPDATE,
                metadata=changes,
            )
            self.db.commit()
            self.db.refresh(organization)
        return success(schemas.Organization.model_validate(organization))

    @guarded
    def delete(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID) -> Result:
        """Delete an organization; members, invitations and scoped resources cascade."""
        organization = org_repo.get_organization(self.db, organization_id)
        if organization is None:
            return not_found(ORGANIZATION_NOT_FOUND)
        if not self.policy.is_owner(acting_user_id, organization_id):
            return unauthorized("Only the organization owner can delete it")
        # The audit row outlives the organization, so it carries no FK to it
        log_organization(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=None,
            target_id=organization.id,
            action=AuditAction.ORGANIZATION_DELETE,
            metadata={"organization_id": str(organization.id), "name": organization.name, "slug": organization.slug},
        )
        org_repo.delete_organization(self.db, organization)
        self.db.commit()
        logger.info("Organization %s deleted by %s", organization_id, acting_user_id)
        return success({"id": organization_id})

    # === Reads ===

    @guarded
    def list_for_user(self, acting_user_id: uuid.UUID) -> Result:
        rows = org_repo.list_memberships_for_user(self.db, acting_user_id)
        return success([
            schemas.OrganizationMembershipSummary(
                organization_id=organization.id,
                name=organization.name,
                slug=organization.slug,
                role=membership.role,
            )
            for membership, organization in rows
        ])

    @guarded
    def get(self, slug_or_id: Union[str, uuid.UUID], acting_user_id: uuid.UUID) -> Result:
        organization_id = _parse_uuid(slug_or_id)
        if organization_id is not None:
            organization = org_repo.get_organization(self.db, organization_id)
        else:
            organization = org_repo.get_organization_by_slug(self.db, str(slug_or_id))
        if organization is None:
            return not_found(ORGANIZATION_NOT_FOUND)
        role = self.policy.role_in(organization.id, acting_user_id)
        if role is None:
            return unauthorized("You are not a member of this organization")
        return success({
            "organization": schemas.Organization.model_validate(organization),
            "role": role,
            "member_count": org_repo.count_members(self.db, organization.id),
        })

    @guarded
    def list_members(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID) -> Result:
        if org_repo.get_organization(self.db, organization_id) is None:
            return not_found(ORGANIZATION_NOT_FOUND)
        if not self.policy.is_member(acting_user_id, organization_id):
            return unauthorized("You are not a member of this organization")
        return success([
            schemas.OrganizationMember(
                user_id=user.id,
                email=user.email,
                display_name=user.display_name,
                role=membership.role,
                joined_at=membership.joined_at,
            )
            for membership, user in org_repo.list_members(self.db, organization_id)
        ])

    # === Membership ===

    @guarded
    def remove_member(self, organization_id: uuid.UUID, user_id: uuid.UUID, acting_user_id: uuid.UUID) -> Result:
        if not self.policy.is_admin(acting_user_id, organization_id):
            return unauthorized("You don't have permission to remove members")
        membership = org_repo.get_membership(self.db, organization_id, user_id)
        if membership is None:
            return not_found(MEMBER_NOT_FOUND)
        if membership.role == ROLE_OWNER:
            return unauthorized("Cannot remove the organization owner")
        removed_role = membership.role
        org_repo.delete_membership(self.db, membership)
        log_organization(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=organization_id,
            action=AuditAction.MEMBER_REMOVE,
            metadata={"user_id": str(user_id), "role": removed_role},
        )
        self.db.commit()
        return success({"organization_id": organization_id, "user_id": user_id})

    @guarded
    def update_member_role(self, organization_id: uuid.UUID, user_id: uuid.UUID, acting_user_id: uuid.UUID, data: Any) -> Result:
        """Change a member's role (OWNER only).

        Granting OWNER is an ownership transfer: the acting owner steps down to
        ADMIN in the same transaction.
        """
        if not self.policy.is_owner(acting_user_id, organization_id):
            return unauthorized(OWNER_ONLY_ROLES)
        payload, error = parse_payload(schemas.MemberRoleUpdate, data)
        if error:
            return error
        membership = org_repo.get_membership(self.db, organization_id, user_id)
        if membership is None:
            return not_found(MEMBER_NOT_FOUND)

        if payload.role == ROLE_OWNER:
            if membership.role == ROLE_OWNER:
                return success({"organization_id": organization_id, "user_id": user_id, "role": ROLE_OWNER})
            return self._transfer(organization_id, user_id, acting_user_id)
        if user_id == acting_user_id:
            return failure(
                ErrorKind.VALIDATION_ERROR,
                "Transfer ownership to another member before changing your own role",
            )

        previous = membership.role
        if previous != payload.role:
            org_repo.change_member_role(self.db, organization_id, user_id, payload.role)
            log_organization(
                self.db,
                actor_user_id=acting_user_id,
                organization_id=organization_id,
                action=AuditAction.MEMBER_ROLE_CHANGE,
                metadata={"user_id": str(user_id), "old_role": previous, "new_role": payload.role},
            )
            self.db.commit()
        return success({"organization_id": organization_id, "user_id": user_id, "role": payload.role})

    @guarded
    def transfer_ownership(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID, data: Any) -> Result:
        payload, error = parse_payload(schemas.OwnershipTransfer, data)
        if error:
            return error
        if org_repo.get_organization(self.db, organization_id) is None:
            return not_found(ORGANIZATION_NOT_FOUND)
        if not self.policy.is_owner(acting_user_id, organization_id):
            return unauthorized("Only the organization owner can transfer ownership")
        if payload.user_id == acting_user_id:
            return failure(ErrorKind.VALIDATION_ERROR, "You already own this organization")
        if org_repo.get_membership(self.db, organization_id, payload.user_id) is None:
            return not_found(MEMBER_NOT_FOUND)
        return self._transfer(organization_id, payload.user_id, acting_user_id)

    def _transfer(self, organization_id: uuid.UUID, new_owner_id: uuid.UUID, acting_user_id: uuid.UUID) -> Result:
        # Demote only if still the owner; a concurrent transfer makes this a no-op
        if not org_repo.change_member_role(self.db, organization_id, acting_user_id, ROLE_ADMIN, expected_role=ROLE_OWNER):
            self.db.rollback()
            return failure(ErrorKind.CONFLICT, "Ownership changed while this request was processed")
        if not org_repo.change_member_role(self.db, organization_id, new_owner_id, ROLE_OWNER):
            self.db.rollback()
            return not_found(MEMBER_NOT_FOUND)
        log_organization(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=organization_id,
            action=AuditAction.OWNERSHIP_TRANSFER,
            metadata={"from_user_id": str(acting_user_id), "to_user_id": str(new_owner_id)},
        )
        self.db.commit()
        logger.info("Ownership of organization %s transferred from %s to %s", organization_id, acting_user_id, new_owner_id)
        return success({"organization_id": organization_id, "owner_id": new_owner_id, "previous_owner_role": ROLE_ADMIN})
