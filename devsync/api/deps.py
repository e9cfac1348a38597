"""
API dependency helpers.

Resolves the acting user from proxy headers and provides the collaborators
that routes hand to the services.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from devsync.api.auth import get_or_create_user, resolve_identity_from_headers
from devsync.db import models
from devsync.db.database import get_db
from devsync.services.notification_service import NotificationService
from devsync.utils.feature_flags import dev_mode_enabled

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"


# Contract:
# Returns the ORM User for the acting principal.
# Raises 401 if identity cannot be resolved.
def get_current_user(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> models.User:
    if dev_mode_enabled():
        email, name = DEV_USER_EMAIL, DEV_USER_NAME
    else:
        name, email = resolve_identity_from_headers(
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
        if not email:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return get_or_create_user(db, email=email, display_name=name)


def get_current_user_or_guest(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Optional[models.User]:
    """Return the acting user, or None for a guest.

    Permissive variant for read endpoints reachable through a public share link.
    """
    try:
        return get_current_user(
            db=db,
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
    except HTTPException as exc:
        if exc.status_code != status.HTTP_401_UNAUTHORIZED:
            raise
        return None


def get_notification_service() -> NotificationService:
    return NotificationService()
