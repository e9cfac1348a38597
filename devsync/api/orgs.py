"""
Organizations API endpoints.

Organization lifecycle, membership management, invitations and usage. Every
route delegates to a service and renders its result.
"""
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from devsync.api.deps import get_current_user, get_notification_service
from devsync.api.responses import respond
from devsync.db import models
from devsync.db.database import get_db
from devsync.services.invitation_service import InvitationService
from devsync.services.notification_service import NotificationService
from devsync.services.organization_service import OrganizationService
from devsync.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_organization(
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).create(user.id, payload), status.HTTP_201_CREATED)


@router.get("")
def list_organizations(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Organizations the user belongs to, with the user's role in each."""
    return respond(OrganizationService(db).list_for_user(user.id))


@router.get("/{slug_or_id}")
def get_organization(
    slug_or_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).get(slug_or_id, user.id))


@router.patch("/{org_id}")
def update_organization(
    org_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).update(org_id, user.id, payload))


@router.delete("/{org_id}")
def delete_organization(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).delete(org_id, user.id))


@router.get("/{org_id}/usage")
def get_member_usage(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(SubscriptionService(db).get_member_usage(org_id, user.id))


# Members

@router.get("/{org_id}/members")
def list_members(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).list_members(org_id, user.id))


@router.patch("/{org_id}/members/{member_user_id}")
def update_member_role(
    org_id: uuid.UUID,
    member_user_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).update_member_role(org_id, member_user_id, user.id, payload))


@router.delete("/{org_id}/members/{member_user_id}")
def remove_member(
    org_id: uuid.UUID,
    member_user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).remove_member(org_id, member_user_id, user.id))


@router.post("/{org_id}/transfer-ownership")
def transfer_ownership(
    org_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(OrganizationService(db).transfer_ownership(org_id, user.id, payload))


# Invitations

@router.get("/{org_id}/invitations")
def list_invitations(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(InvitationService(db).list_pending(org_id, user.id))


@router.post("/{org_id}/invitations", status_code=status.HTTP_201_CREATED)
def create_invitation(
    org_id: uuid.UUID,
    payload: dict,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    service = InvitationService(db, notification_service=notifications)
    return respond(service.invite(org_id, user.id, payload), status.HTTP_201_CREATED)


@router.delete("/{org_id}/invitations/{invitation_id}")
def revoke_invitation(
    org_id: uuid.UUID,
    invitation_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(InvitationService(db).revoke(invitation_id, user.id, organization_id=org_id))
