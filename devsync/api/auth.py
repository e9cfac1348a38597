"""
Authentication helpers and identity resolution.

Parses reverse-proxy identity headers, normalizes emails, and provisions
unknown users on first sight as FREE-tier accounts.
"""
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from devsync.db import models
from devsync.db.repositories import UniqueViolation
from devsync.db.repositories import users as user_repo


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    normalized = email.strip().lower()
    return normalized or None


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    user = user_repo.get_user_by_email(db, email)
    if user:
        return user
    try:
        user = user_repo.create_user(db, email=email, display_name=display_name or email.split("@")[0])
    except UniqueViolation:
        # First requests of a new user raced each other
        db.rollback()
        return user_repo.get_user_by_email(db, email)
    db.commit()
    db.refresh(user)
    return user
