"""
Invitation lifecycle: issue, look up, accept, decline and revoke organization
invitations.

An invitation is pending until it is accepted, declined or revoked (the row is
deleted in each case). Expiry is never stored: an invitation whose
``expires_at`` has passed is treated as invalid wherever it is read, and a
later invite to the same address reissues the row in place.
"""

import uuid
import secrets
import logging
from datetime import timedelta
from typing import Any, Callable, Optional
from sqlalchemy.orm import Session

from devsync.audit import AuditAction, log_invitation
from devsync.db import models, schemas
from devsync.db.models import ensure_aware, now_utc
from devsync.db.repositories import UniqueViolation
from devsync.db.repositories import invitations as invitation_repo
from devsync.db.repositories import organizations as org_repo
from devsync.db.repositories import users as user_repo
from devsync.results import ErrorKind, Result, failure, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, not_found, parse_payload, unauthorized
from devsync.services.subscription_service import MEMBER_LIMIT_MESSAGE, SubscriptionService
from devsync.utils.feature_flags import get_settings
from devsync.utils.role_permissions import INVITABLE_ROLES
from devsync.utils.urls import build_invite_link

logger = logging.getLogger(__name__)

INVITATION_NOT_FOUND = "Invitation not found"
INVITATION_EXPIRED = "This invitation has expired"
EMAIL_MISMATCH = "This invitation was sent to a different email address"
ALREADY_INVITED = "An invitation has already been sent to this email"


def generate_invite_token() -> str:
    return secrets.token_urlsafe(32)


def is_expired(invitation: models.OrganizationInvitation, now) -> bool:
    return ensure_aware(invitation.expires_at) < now


class InvitationService:
    """Service class for organization invitations."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[Any] = None,
        subscription_service: Optional[SubscriptionService] = None,
        clock: Callable = now_utc,
    ):
        self.db = db
        self.clock = clock
        self.policy = AccessPolicy(db)
        self.subscriptions = subscription_service or SubscriptionService(db, clock=clock)
        self.notification_service = notification_service

    def _load_for_identity(self, token: str, acting_user_id: uuid.UUID, allow_expired: bool = False):
        """Load an invitation by token and check it was addressed to the acting user."""
        invitation = invitation_repo.get_invitation_by_token(self.db, token)
        if invitation is None:
            return None, None, not_found(INVITATION_NOT_FOUND)
        if not allow_expired and is_expired(invitation, self.clock()):
            return None, None, failure(ErrorKind.EXPIRED, INVITATION_EXPIRED)
        user = user_repo.get_user(self.db, acting_user_id)
        if user is None:
            return None, None, unauthorized()
        if (user.email or "").strip().lower() != invitation.email.strip().lower():
            return None, None, failure(ErrorKind.EMAIL_MISMATCH, EMAIL_MISMATCH)
        return invitation, user, None

    def _notify(self, invitation: models.OrganizationInvitation, organization: models.Organization, inviter: Optional[models.User]) -> bool:
        if self.notification_service is None:
            return False
        result = self.notification_service.send_invite_email(
            to_email=invitation.email,
            organization_name=organization.name,
            inviter_name=inviter.display_name if inviter else None,
            inviter_email=inviter.email if inviter else None,
            role=invitation.role,
            invite_link=build_invite_link(invitation.token),
            expires_in_days=get_settings().invite_ttl_days,
        )
        if not result.get("success"):
            logger.warning(
                "Invitation %s created but email to %s failed: %s",
                invitation.id, invitation.email, result.get("error"),
            )
            return False
        return not result.get("skipped", False)

    # === Issue ===

    @guarded
    def invite(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID, data: Any) -> Result:
        payload, error = parse_payload(schemas.OrganizationInvitationCreate, data)
        if error:
            return error

        organization = org_repo.get_organization(self.db, organization_id)
        if organization is None:
            return not_found("Organization not found")
        if not self.policy.is_admin(acting_user_id, organization_id):
            return unauthorized("You don't have permission to invite members")
        if payload.role not in INVITABLE_ROLES:
            return failure(ErrorKind.VALIDATION_ERROR, "Cannot invite as owner")
        if not self.subscriptions.can_add_member(organization_id):
            return failure(ErrorKind.LIMIT_REACHED, MEMBER_LIMIT_MESSAGE)
        if org_repo.is_member_email(self.db, organization_id, payload.email):
            return failure(ErrorKind.ALREADY_MEMBER, "User is already a member of this organization")

        now = self.clock()
        expires_at = now + timedelta(days=get_settings().invite_ttl_days)
        existing = invitation_repo.get_invitation_for_email(self.db, organization_id, payload.email)
        if existing is not None and not is_expired(existing, now):
            return failure(ErrorKind.ALREADY_EXISTS, ALREADY_INVITED)

        if existing is not None:
            invitation = invitation_repo.refresh_invitation(
                self.db,
                existing,
                role=payload.role,
                token=generate_invite_token(),
                invited_by_user_id=acting_user_id,
                expires_at=expires_at,
                created_at=now,
            )
        else:
            try:
                invitation = invitation_repo.create_invitation(
                    self.db,
                    organization_id=organization_id,
                    email=payload.email,
                    role=payload.role,
                    token=generate_invite_token(),
                    invited_by_user_id=acting_user_id,
                    expires_at=expires_at,
                )
            except UniqueViolation:
                # A concurrent request invited the same address first
                self.db.rollback()
                return failure(ErrorKind.ALREADY_EXISTS, ALREADY_INVITED)

        log_invitation(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=organization_id,
            invitation_id=invitation.id,
            action=AuditAction.INVITATION_CREATE,
            metadata={"email": invitation.email, "role": invitation.role, "reissued": existing is not None},
        )
        self.db.commit()
        self.db.refresh(invitation)
        logger.info("Invitation %s issued for %s to organization %s", invitation.id, invitation.email, organization_id)

        # The invitation stands whether or not the email goes out
        email_sent = self._notify(invitation, organization, user_repo.get_user(self.db, acting_user_id))
        return success({
            "invitation": schemas.OrganizationInvitation.model_validate(invitation),
            "invite_link": build_invite_link(invitation.token),
            "email_sent": email_sent,
        })

    # === Read ===

    @guarded
    def get_by_token(self, token: str) -> Result:
        invitation = invitation_repo.get_invitation_by_token(self.db, token)
        if invitation is None:
            return not_found(INVITATION_NOT_FOUND)
        organization = org_repo.get_organization(self.db, invitation.organization_id)
        if organization is None:
            return not_found(INVITATION_NOT_FOUND)
        inviter = user_repo.get_user(self.db, invitation.invited_by_user_id)
        return success(schemas.InvitationDetails(
            organization_id=organization.id,
            organization_name=organization.name,
            organization_slug=organization.slug,
            email=invitation.email,
            role=invitation.role,
            inviter_name=(inviter.display_name or inviter.email) if inviter else None,
            expires_at=ensure_aware(invitation.expires_at),
            expired=is_expired(invitation, self.clock()),
        ))

    @guarded
    def list_pending(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID) -> Result:
        if org_repo.get_organization(self.db, organization_id) is None:
            return not_found("Organization not found")
        if not self.policy.is_admin(acting_user_id, organization_id):
            return unauthorized("You don't have permission to view invitations")
        invitations = invitation_repo.list_active_invitations(self.db, organization_id, self.clock())
        return success([schemas.OrganizationInvitation.model_validate(i) for i in invitations])

    # === Respond ===

    @guarded
    def accept(self, token: str, acting_user_id: uuid.UUID) -> Result:
        """Turn an invitation into a membership.

        Membership creation and invitation removal commit together. The member
        limit is checked again here, with this invitation's own seat excluded
        from the pending count.
        """
        invitation, user, error = self._load_for_identity(token, acting_user_id)
        if error:
            return error
        organization_id = invitation.organization_id

        if org_repo.get_membership(self.db, organization_id, user.id) is not None:
            invitation_repo.delete_invitation(self.db, invitation)
            self.db.commit()
            return failure(ErrorKind.ALREADY_MEMBER, "You are already a member of this organization")

        if not self.subscriptions.can_add_member(organization_id, exclude_invitation_id=invitation.id):
            return failure(ErrorKind.LIMIT_REACHED, MEMBER_LIMIT_MESSAGE)

        try:
            membership = org_repo.add_membership(
                self.db, organization_id=organization_id, user_id=user.id, role=invitation.role
            )
        except UniqueViolation:
            self.db.rollback()
            return failure(ErrorKind.ALREADY_MEMBER, "You are already a member of this organization")
        invitation_id = invitation.id
        if not invitation_repo.consume_invitation(self.db, invitation_id):
            # Accepted, declined or revoked by a concurrent request
            self.db.rollback()
            return not_found(INVITATION_NOT_FOUND)

        log_invitation(
            self.db,
            actor_user_id=user.id,
            organization_id=organization_id,
            invitation_id=invitation_id,
            action=AuditAction.INVITATION_ACCEPT,
            metadata={"role": membership.role},
        )
        self.db.commit()
        logger.info("User %s joined organization %s as %s", user.id, organization_id, membership.role)
        return success({"organization_id": organization_id, "role": membership.role})

    @guarded
    def decline(self, token: str, acting_user_id: uuid.UUID) -> Result:
        invitation, user, error = self._load_for_identity(token, acting_user_id, allow_expired=True)
        if error:
            return error
        organization_id, invitation_id = invitation.organization_id, invitation.id
        if not invitation_repo.consume_invitation(self.db, invitation_id):
            self.db.rollback()
            return not_found(INVITATION_NOT_FOUND)
        log_invitation(
            self.db,
            actor_user_id=user.id,
            organization_id=organization_id,
            invitation_id=invitation_id,
            action=AuditAction.INVITATION_DECLINE,
        )
        self.db.commit()
        return success({"id": invitation_id})

    @guarded
    def revoke(self, invitation_id: uuid.UUID, acting_user_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None) -> Result:
        invitation = invitation_repo.get_invitation(self.db, invitation_id)
        if invitation is None or (organization_id is not None and invitation.organization_id != organization_id):
            return not_found(INVITATION_NOT_FOUND)
        organization_id = invitation.organization_id
        if not self.policy.is_admin(acting_user_id, organization_id):
            return unauthorized("You don't have permission to revoke this invitation")
        email = invitation.email
        invitation_repo.delete_invitation(self.db, invitation)
        log_invitation(
            self.db,
            actor_user_id=acting_user_id,
            organization_id=organization_id,
            invitation_id=invitation_id,
            action=AuditAction.INVITATION_REVOKE,
            metadata={"email": email},
        )
        self.db.commit()
        return success({"id": invitation_id})
