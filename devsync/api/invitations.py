"""
Invitation landing endpoints addressed by token.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from devsync.api.deps import get_current_user
from devsync.api.responses import respond
from devsync.db import models
from devsync.db.database import get_db
from devsync.services.invitation_service import InvitationService

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get("/{token}")
def get_invitation(token: str, db: Session = Depends(get_db)):
    """Public invitation details for the landing page (no identity required)."""
    return respond(InvitationService(db).get_by_token(token))


@router.post("/{token}/accept")
def accept_invitation(
    token: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(InvitationService(db).accept(token, user.id))


@router.post("/{token}/decline")
def decline_invitation(
    token: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(InvitationService(db).decline(token, user.id))
