"""
User repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from devsync.db import models
from . import insert_unique


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def create_user(db: Session, *, email: str, display_name: Optional[str] = None, subscription_tier: str = "free") -> models.User:
    """Insert a user; raises UniqueViolation when the email is already registered."""
    user = models.User(
        email=email.strip().lower(),
        display_name=display_name,
        subscription_tier=subscription_tier,
    )
    return insert_unique(db, user)


def get_subscription_tier(db: Session, user_id: uuid.UUID) -> Optional[str]:
    row = db.query(models.User.subscription_tier).filter(models.User.id == user_id).first()
    return row[0] if row else None
