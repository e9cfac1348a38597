"""
Current-user endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from devsync.api.deps import get_current_user
from devsync.api.responses import respond
from devsync.db import models, schemas
from devsync.db.database import get_db
from devsync.results import success
from devsync.services.organization_service import OrganizationService
from devsync.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/me", tags=["users"])


@router.get("")
def get_me(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    memberships = OrganizationService(db).list_for_user(user.id)
    return respond(success({
        "user": schemas.User.model_validate(user),
        "memberships": memberships.data if memberships.ok else [],
    }))


@router.get("/limits")
def get_limits(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return respond(SubscriptionService(db).get_limit_info(user.id))
