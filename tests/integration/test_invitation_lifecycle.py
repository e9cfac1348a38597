from datetime import timedelta

import pytest

from devsync.audit import AuditAction
from devsync.db import models
from devsync.db.models import ensure_aware, now_utc
from devsync.db.repositories import invitations as invitation_repo
from devsync.db.repositories import organizations as org_repo
from devsync.results import ErrorKind
from devsync.services.invitation_service import (
    ALREADY_INVITED,
    EMAIL_MISMATCH,
    INVITATION_EXPIRED,
    InvitationService,
)
from devsync.utils.feature_flags import refresh_settings_cache
from devsync.utils.role_permissions import ROLE_MEMBER


def _token(result):
    return result.data["invite_link"].rsplit("/", 1)[-1]


def _later(days):
    return lambda: now_utc() + timedelta(days=days)


def _audit_actions(db_session):
    return [row.action_type for row in db_session.query(models.AuditLog).all()]


class TestInviteAndAccept:
    def test_end_to_end(self, db_session, user_factory, organization_factory, notifications):
        owner = user_factory(display_name="Olivia")
        org = organization_factory(owner, name="Acme")
        invitee = user_factory("new@example.com")
        service = InvitationService(db_session, notification_service=notifications)

        issued = service.invite(org.id, owner.id, {"email": "new@example.com"})
        assert issued.ok, issued
        assert issued.data["email_sent"] is True
        assert issued.data["invite_link"].startswith("https://app.devsync.test/invite/")
        assert issued.data["invitation"].role == ROLE_MEMBER

        sent = notifications.sent[0]
        assert sent["to_email"] == "new@example.com"
        assert sent["organization_name"] == "Acme"
        assert sent["inviter_name"] == "Olivia"
        assert sent["invite_link"] == issued.data["invite_link"]

        accepted = service.accept(_token(issued), invitee.id)
        assert accepted.ok, accepted
        assert accepted.data["role"] == ROLE_MEMBER
        membership = (
            db_session.query(models.OrganizationMembership)
            .filter_by(organization_id=org.id, user_id=invitee.id)
            .one()
        )
        assert membership.role == ROLE_MEMBER
        assert db_session.query(models.OrganizationInvitation).count() == 0

    def test_invitation_is_single_use(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory("once@example.com")
        service = InvitationService(db_session)
        token = _token(service.invite(org.id, owner.id, {"email": invitee.email}))

        assert service.accept(token, invitee.id).ok
        again = service.accept(token, invitee.id)
        assert again.kind == ErrorKind.NOT_FOUND

    def test_email_match_is_case_insensitive(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory("casey@example.com")
        service = InvitationService(db_session)
        issued = service.invite(org.id, owner.id, {"email": "  CASEY@Example.com "})
        assert issued.data["invitation"].email == "casey@example.com"
        assert service.accept(_token(issued), invitee.id).ok

    def test_admin_role_is_carried_over(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory()
        service = InvitationService(db_session)
        token = _token(service.invite(org.id, owner.id, {"email": invitee.email, "role": "ADMIN"}))
        assert service.accept(token, invitee.id).data["role"] == "admin"

    def test_expired_invitation_cannot_be_accepted(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory()
        token = _token(InvitationService(db_session).invite(org.id, owner.id, {"email": invitee.email}))

        result = InvitationService(db_session, clock=_later(8)).accept(token, invitee.id)
        assert result.kind == ErrorKind.EXPIRED
        assert result.error == INVITATION_EXPIRED
        assert db_session.query(models.OrganizationMembership).filter_by(user_id=invitee.id).count() == 0

    def test_other_account_cannot_accept(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        user_factory("intended@example.com")
        intruder = user_factory("intruder@example.com")
        service = InvitationService(db_session)
        token = _token(service.invite(org.id, owner.id, {"email": "intended@example.com"}))

        result = service.accept(token, intruder.id)
        assert result.kind == ErrorKind.EMAIL_MISMATCH
        assert result.error == EMAIL_MISMATCH
        assert db_session.query(models.OrganizationInvitation).count() == 1

    def test_existing_member_accepting_clears_the_invitation(
        self, db_session, user_factory, organization_factory, membership_factory, invitation_factory
    ):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        invitation = invitation_factory(org, owner, member.email)

        result = InvitationService(db_session).accept(invitation.token, member.id)
        assert result.kind == ErrorKind.ALREADY_MEMBER
        assert db_session.query(models.OrganizationInvitation).count() == 0

    def test_unknown_token(self, db_session, user_factory):
        user = user_factory()
        assert InvitationService(db_session).accept("nope", user.id).kind == ErrorKind.NOT_FOUND


class TestConcurrentAcceptance:
    """Two requests racing on one invitation leave exactly one membership."""

    def _members(self, db_session, org_id, user_id):
        return (
            db_session.query(models.OrganizationMembership)
            .filter_by(organization_id=org_id, user_id=user_id)
            .count()
        )

    def test_losing_accept_hits_the_membership_key(
        self, db_session, user_factory, organization_factory, invitation_factory, monkeypatch
    ):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory("racer@example.com")
        invitation = invitation_factory(org, owner, invitee.email)

        # the winning request committed its membership after this one checked
        db_session.execute(models.OrganizationMembership.__table__.insert().values(
            organization_id=org.id, user_id=invitee.id, role=ROLE_MEMBER
        ))
        db_session.commit()
        monkeypatch.setattr(org_repo, "get_membership", lambda *args, **kwargs: None)

        result = InvitationService(db_session).accept(invitation.token, invitee.id)
        assert result.kind == ErrorKind.ALREADY_MEMBER
        assert self._members(db_session, org.id, invitee.id) == 1

    def test_losing_accept_finds_the_invitation_consumed(
        self, db_session, user_factory, organization_factory, invitation_factory, monkeypatch
    ):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory("late-racer@example.com")
        invitation = invitation_factory(org, owner, invitee.email)
        monkeypatch.setattr(invitation_repo, "consume_invitation", lambda db, invitation_id: False)

        result = InvitationService(db_session).accept(invitation.token, invitee.id)
        assert result.kind == ErrorKind.NOT_FOUND
        # the membership insert was rolled back with the failed consume
        assert self._members(db_session, org.id, invitee.id) == 0
        assert _audit_actions(db_session) == []


class TestInviteRules:
    def test_duplicate_active_invitation(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        service = InvitationService(db_session)
        assert service.invite(org.id, owner.id, {"email": "dup@example.com"}).ok
        again = service.invite(org.id, owner.id, {"email": "DUP@example.com"})
        assert again.kind == ErrorKind.ALREADY_EXISTS
        assert again.error == ALREADY_INVITED

    def test_expired_invitation_is_reissued_in_place(self, db_session, user_factory, organization_factory, invitation_factory):
        owner = user_factory()
        org = organization_factory(owner)
        stale = invitation_factory(org, owner, "late@example.com", expires_in=timedelta(days=-1))
        stale_id, stale_token = stale.id, stale.token

        result = InvitationService(db_session).invite(org.id, owner.id, {"email": "late@example.com", "role": "admin"})
        assert result.ok, result
        assert result.data["invitation"].id == stale_id
        assert result.data["invitation"].role == "admin"
        assert _token(result) != stale_token
        assert ensure_aware(result.data["invitation"].expires_at) > now_utc()
        assert db_session.query(models.OrganizationInvitation).count() == 1

    def test_cannot_invite_as_owner(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        result = InvitationService(db_session).invite(org.id, owner.id, {"email": "boss@example.com", "role": "owner"})
        assert result.kind == ErrorKind.VALIDATION_ERROR

    def test_invalid_email_is_rejected(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        result = InvitationService(db_session).invite(org.id, owner.id, {"email": "not-an-email"})
        assert result.kind == ErrorKind.VALIDATION_ERROR
        assert result.error == "Invalid email address"

    @pytest.mark.parametrize("email", ["x@@y.com", "a@.com", "a@b.", "<a>@b.c"])
    def test_malformed_email_takes_no_seat(self, db_session, user_factory, organization_factory, email):
        owner = user_factory()
        org = organization_factory(owner)
        result = InvitationService(db_session).invite(org.id, owner.id, {"email": email})
        assert result.kind == ErrorKind.VALIDATION_ERROR
        assert result.error == "Invalid email address"
        assert db_session.query(models.OrganizationInvitation).count() == 0

    def test_member_cannot_invite(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        result = InvitationService(db_session).invite(org.id, member.id, {"email": "x@example.com"})
        assert result.kind == ErrorKind.UNAUTHORIZED

    def test_admin_can_invite(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        admin = user_factory()
        membership_factory(org, admin, role="admin")
        assert InvitationService(db_session).invite(org.id, admin.id, {"email": "x@example.com"}).ok

    def test_existing_member_cannot_be_invited(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory("here@example.com")
        membership_factory(org, member)
        result = InvitationService(db_session).invite(org.id, owner.id, {"email": "HERE@example.com"})
        assert result.kind == ErrorKind.ALREADY_MEMBER

    def test_failed_email_keeps_the_invitation(self, db_session, user_factory, organization_factory, notifications):
        owner = user_factory()
        org = organization_factory(owner)
        notifier = notifications
        notifier.fail = True
        result = InvitationService(db_session, notification_service=notifier).invite(
            org.id, owner.id, {"email": "bounce@example.com"}
        )
        assert result.ok
        assert result.data["email_sent"] is False
        assert len(notifier.sent) == 1
        assert db_session.query(models.OrganizationInvitation).count() == 1

    def test_email_states_the_configured_lifetime(self, db_session, user_factory, organization_factory, notifications, monkeypatch):
        monkeypatch.setenv("INVITE_TTL_DAYS", "3")
        refresh_settings_cache()
        owner = user_factory()
        org = organization_factory(owner)
        service = InvitationService(db_session, notification_service=notifications)

        issued = service.invite(org.id, owner.id, {"email": "soon@example.com"})
        assert notifications.sent[0]["expires_in_days"] == 3
        lifetime = ensure_aware(issued.data["invitation"].expires_at) - now_utc()
        assert timedelta(days=2, hours=23) < lifetime <= timedelta(days=3)

    def test_without_notifier_email_is_not_sent(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        result = InvitationService(db_session).invite(org.id, owner.id, {"email": "quiet@example.com"})
        assert result.data["email_sent"] is False


class TestDeclineRevokeList:
    def test_decline_removes_invitation(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory()
        service = InvitationService(db_session)
        token = _token(service.invite(org.id, owner.id, {"email": invitee.email}))

        assert service.decline(token, invitee.id).ok
        assert db_session.query(models.OrganizationInvitation).count() == 0
        assert db_session.query(models.OrganizationMembership).filter_by(user_id=invitee.id).count() == 0

    def test_expired_invitation_can_still_be_declined(self, db_session, user_factory, organization_factory, invitation_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitee = user_factory()
        invitation = invitation_factory(org, owner, invitee.email, expires_in=timedelta(days=-3))
        assert InvitationService(db_session).decline(invitation.token, invitee.id).ok

    def test_decline_requires_matching_email(self, db_session, user_factory, organization_factory, invitation_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitation = invitation_factory(org, owner, "someone@example.com")
        other = user_factory()
        assert InvitationService(db_session).decline(invitation.token, other.id).kind == ErrorKind.EMAIL_MISMATCH

    def test_revoke(self, db_session, user_factory, organization_factory, invitation_factory):
        owner = user_factory()
        org = organization_factory(owner)
        invitation = invitation_factory(org, owner, "gone@example.com")
        result = InvitationService(db_session).revoke(invitation.id, owner.id, org.id)
        assert result.ok
        assert db_session.query(models.OrganizationInvitation).count() == 0

    def test_revoke_checks_organization(self, db_session, user_factory, organization_factory, invitation_factory):
        owner = user_factory(tier="pro")
        org = organization_factory(owner)
        other_org = organization_factory(owner)
        invitation = invitation_factory(org, owner, "stay@example.com")
        result = InvitationService(db_session).revoke(invitation.id, owner.id, other_org.id)
        assert result.kind == ErrorKind.NOT_FOUND
        assert db_session.query(models.OrganizationInvitation).count() == 1

    def test_member_cannot_revoke(self, db_session, user_factory, organization_factory, membership_factory, invitation_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        invitation = invitation_factory(org, owner, "stay@example.com")
        assert InvitationService(db_session).revoke(invitation.id, member.id).kind == ErrorKind.UNAUTHORIZED

    def test_list_pending_hides_expired(self, db_session, user_factory, organization_factory, membership_factory, invitation_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        invitation_factory(org, owner, "fresh@example.com")
        invitation_factory(org, owner, "stale@example.com", expires_in=timedelta(days=-1))
        service = InvitationService(db_session)

        pending = service.list_pending(org.id, owner.id)
        assert [i.email for i in pending.data] == ["fresh@example.com"]
        assert service.list_pending(org.id, member.id).kind == ErrorKind.UNAUTHORIZED

    def test_get_by_token_reports_expiry(self, db_session, user_factory, organization_factory, invitation_factory):
        owner = user_factory(display_name="Olivia")
        org = organization_factory(owner, name="Acme", slug="acme")
        invitation = invitation_factory(org, owner, "peek@example.com", role="admin")

        details = InvitationService(db_session).get_by_token(invitation.token).data
        assert (details.organization_name, details.organization_slug, details.role) == ("Acme", "acme", "admin")
        assert details.inviter_name == "Olivia"
        assert details.expired is False
        assert InvitationService(db_session, clock=_later(30)).get_by_token(invitation.token).data.expired is True
        assert InvitationService(db_session).get_by_token("missing").kind == ErrorKind.NOT_FOUND


class TestInvitationAudit:
    def test_lifecycle_is_audited(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        first = user_factory()
        second = user_factory()
        service = InvitationService(db_session)

        service.accept(_token(service.invite(org.id, owner.id, {"email": first.email})), first.id)
        service.decline(_token(service.invite(org.id, owner.id, {"email": second.email})), second.id)
        revoked = service.invite(org.id, owner.id, {"email": "third@example.com"})
        service.revoke(revoked.data["invitation"].id, owner.id)

        actions = _audit_actions(db_session)
        assert actions.count(AuditAction.INVITATION_CREATE.value) == 3
        for action in (AuditAction.INVITATION_ACCEPT, AuditAction.INVITATION_DECLINE, AuditAction.INVITATION_REVOKE):
            assert action.value in actions
