"""
Subscription limit service: tier-based ceilings on workspaces and members.

FREE users may own a limited number of organizations and a FREE organization
(judged by its owner's tier) may hold a limited number of members, where
pending invitations count as members so capacity cannot be over-issued.
PRO lifts both ceilings.
"""

import uuid
import logging
from typing import Callable, Optional
from sqlalchemy.orm import Session

from devsync.db import schemas
from devsync.db.models import now_utc
from devsync.db.repositories import organizations as org_repo
from devsync.db.repositories import invitations as invitation_repo
from devsync.db.repositories import users as user_repo
from devsync.results import Result, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, not_found, unauthorized
from devsync.utils.feature_flags import AppSettings, get_settings

logger = logging.getLogger(__name__)

TIER_FREE = "free"
TIER_PRO = "pro"

WORKSPACE_LIMIT_MESSAGE = "Workspace limit reached. Upgrade to PRO for unlimited workspaces."
MEMBER_LIMIT_MESSAGE = "Member limit reached. Upgrade to PRO for unlimited members."


class SubscriptionService:
    """Answers limit questions; never mutates anything."""

    def __init__(
        self,
        db: Session,
        settings: Optional[AppSettings] = None,
        clock: Callable = now_utc,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock

    def _tier(self, user_id: Optional[uuid.UUID]) -> str:
        if user_id is None:
            return TIER_FREE
        return (user_repo.get_subscription_tier(self.db, user_id) or TIER_FREE).lower()

    def _owner_id(self, organization_id: uuid.UUID) -> Optional[uuid.UUID]:
        owner = org_repo.get_owner_membership(self.db, organization_id)
        return owner.user_id if owner else None

    # === Workspaces ===

    def get_workspace_limit(self, user_id: uuid.UUID) -> Optional[int]:
        """Return the number of organizations the user may own, None for unlimited."""
        if self._tier(user_id) == TIER_PRO:
            return None
        return self.settings.free_tier_workspace_limit

    def can_create_workspace(self, user_id: uuid.UUID) -> bool:
        limit = self.get_workspace_limit(user_id)
        if limit is None:
            return True
        return org_repo.count_owned_organizations(self.db, user_id) < limit

    # === Members ===

    def get_member_limit(self, organization_id: uuid.UUID) -> Optional[int]:
        """Return the member ceiling, None for unlimited and 0 for an ownerless organization."""
        owner_id = self._owner_id(organization_id)
        if owner_id is None:
            return 0
        if self._tier(owner_id) == TIER_PRO:
            return None
        return self.settings.free_tier_member_limit

    def seats_in_use(self, organization_id: uuid.UUID, exclude_invitation_id: Optional[uuid.UUID] = None) -> int:
        members = org_repo.count_members(self.db, organization_id)
        pending = invitation_repo.count_active_invitations(
            self.db, organization_id, self.clock(), exclude_invitation_id=exclude_invitation_id
        )
        return members + pending

    def can_add_member(self, organization_id: uuid.UUID, exclude_invitation_id: Optional[uuid.UUID] = None) -> bool:
        """Whether one more member (or pending invitation) fits.

        ``exclude_invitation_id`` leaves an invitation out of the pending count;
        accepting an invitation converts its own seat rather than adding one.
        """
        limit = self.get_member_limit(organization_id)
        if limit is None:
            return True
        if limit <= 0:
            return False
        return self.seats_in_use(organization_id, exclude_invitation_id) < limit

    # === Read models ===

    @guarded
    def get_limit_info(self, user_id: uuid.UUID) -> Result:
        user = user_repo.get_user(self.db, user_id)
        if user is None:
            return not_found("User not found")
        owned = org_repo.count_owned_organizations(self.db, user_id)
        limit = self.get_workspace_limit(user_id)
        return success(schemas.LimitInfo(
            tier=self._tier(user_id),
            workspaces_owned=owned,
            workspace_limit=limit,
            can_create_workspace=limit is None or owned < limit,
        ))

    @guarded
    def get_member_usage(self, organization_id: uuid.UUID, acting_user_id: uuid.UUID) -> Result:
        if org_repo.get_organization(self.db, organization_id) is None:
            return not_found("Organization not found")
        if not AccessPolicy(self.db).is_member(acting_user_id, organization_id):
            return unauthorized("You are not a member of this organization")
        members = org_repo.count_members(self.db, organization_id)
        pending = invitation_repo.count_active_invitations(self.db, organization_id, self.clock())
        return success(schemas.MemberUsage(
            members=members,
            pending_invites=pending,
            limit=self.get_member_limit(organization_id),
            can_add_member=self.can_add_member(organization_id),
        ))
