import uuid
import pytest
from datetime import timedelta
from sqlalchemy.orm import Session

from devsync.db import models
from devsync.services.snippet_service import SnippetService
from devsync.utils.role_permissions import ROLE_OWNER


class CapturingNotifications:
    """Stands in for NotificationService; records every invitation email."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_invite_email(self, **kwargs):
        self.sent.append(kwargs)
        if self.fail:
            return {"success": False, "error": "provider unavailable"}
        return {"success": True, "provider": "test", "message_id": f"msg-{len(self.sent)}"}


@pytest.fixture
def notifications():
    return CapturingNotifications()


# Permission / context fixtures

@pytest.fixture
def user_factory(db_session: Session):
    def _create(email: str = None, tier: str = "free", display_name: str = None):
        email = (email or f"user_{uuid.uuid4().hex[:8]}@example.com").lower()
        user = models.User(email=email, display_name=display_name or email.split("@")[0], subscription_tier=tier)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def organization_factory(db_session: Session):
    """Create an organization with ``owner`` as its OWNER member."""
    def _create(owner, name: str = None, slug: str = None):
        suffix = uuid.uuid4().hex[:6]
        org = models.Organization(name=name or f"Org {suffix}", slug=slug or f"org-{suffix}", created_by=owner.id)
        db_session.add(org)
        db_session.flush()
        db_session.add(models.OrganizationMembership(organization_id=org.id, user_id=owner.id, role=ROLE_OWNER))
        db_session.commit()
        db_session.refresh(org)
        return org
    return _create


@pytest.fixture
def membership_factory(db_session: Session):
    def _create(org, user, role: str = "member"):
        m = models.OrganizationMembership(organization_id=org.id, user_id=user.id, role=role)
        db_session.add(m)
        db_session.commit()
        return m
    return _create


@pytest.fixture
def invitation_factory(db_session: Session):
    """Insert an invitation row directly; ``expires_in`` may be negative."""
    def _create(org, inviter, email: str, role: str = "member", expires_in: timedelta = timedelta(days=7)):
        invitation = models.OrganizationInvitation(
            organization_id=org.id,
            email=email.lower(),
            role=role,
            token=uuid.uuid4().hex,
            invited_by_user_id=inviter.id,
            expires_at=models.now_utc() + expires_in,
        )
        db_session.add(invitation)
        db_session.commit()
        db_session.refresh(invitation)
        return invitation
    return _create


@pytest.fixture
def snippet_factory(db_session: Session):
    """Create a snippet through the service so tags are resolved in scope."""
    def _create(user, title: str = "Snippet", organization=None, visibility: str = None, tags=None):
        payload = {"title": title, "code": "print('hi')", "language": "python", "tags": tags or []}
        if organization is not None:
            payload["organization_id"] = str(organization.id)
        if visibility is not None:
            payload["visibility"] = visibility
        result = SnippetService(db_session).create(user.id, payload)
        assert result.ok, result
        return result.data
    return _create


# FastAPI app wired to the per-test session

@pytest.fixture
def client(db_session, notifications):
    from fastapi.testclient import TestClient
    from devsync.api.main import app
    from devsync.api.deps import get_notification_service
    from devsync.db.database import get_db

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notifications
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def as_user():
    """Identity headers as set by the authenticating reverse proxy."""
    def _headers(email: str, name: str = None) -> dict:
        headers = {"x-auth-request-email": email}
        if name:
            headers["x-auth-request-user"] = name
        return headers
    return _headers
