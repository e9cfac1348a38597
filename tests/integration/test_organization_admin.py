import uuid

import pytest

from devsync.audit import AuditAction
from devsync.db import models
from devsync.results import ErrorKind
from devsync.services.organization_service import SLUG_TAKEN, OrganizationService
from devsync.utils.role_permissions import ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER


def _roles(db_session, org_id):
    rows = db_session.query(models.OrganizationMembership).filter_by(organization_id=org_id).all()
    return {row.user_id: row.role for row in rows}


class TestOrganizationLifecycle:
    def test_create_makes_caller_owner(self, db_session, user_factory):
        user = user_factory()
        result = OrganizationService(db_session).create(user.id, {"name": "  Acme Corp  "})
        assert result.ok, result
        assert result.data.name == "Acme Corp"
        assert result.data.slug == "acme-corp"
        assert _roles(db_session, result.data.id) == {user.id: ROLE_OWNER}

    def test_slug_collision_gets_suffix(self, db_session, user_factory):
        service = OrganizationService(db_session)
        first = service.create(user_factory().id, {"name": "Acme Corp"}).data
        second = service.create(user_factory().id, {"name": "acme corp!"}).data
        assert (first.slug, second.slug) == ("acme-corp", "acme-corp-2")

    def test_slug_candidates_exhausted(self, db_session, user_factory, organization_factory):
        squatter = user_factory(tier="pro")
        organization_factory(squatter, slug="acme")
        for suffix in range(2, 11):
            organization_factory(squatter, slug=f"acme-{suffix}")
        result = OrganizationService(db_session).create(user_factory().id, {"name": "Acme"})
        assert result.kind == ErrorKind.CONFLICT
        assert result.error == SLUG_TAKEN

    @pytest.mark.parametrize("name,message", [
        ("!!!", "Name must contain at least 2 letters or numbers"),
        ("   ", "Name is required"),
        ("x" * 101, "Name is too long"),
    ])
    def test_invalid_names(self, db_session, user_factory, name, message):
        result = OrganizationService(db_session).create(user_factory().id, {"name": name})
        assert result.kind == ErrorKind.VALIDATION_ERROR
        assert result.error == message
        assert db_session.query(models.Organization).count() == 0

    def test_create_is_audited(self, db_session, user_factory):
        user = user_factory()
        org = OrganizationService(db_session).create(user.id, {"name": "Audited"}).data
        row = db_session.query(models.AuditLog).filter_by(action_type=AuditAction.ORGANIZATION_CREATE.value).one()
        assert row.organization_id == org.id
        assert row.metadata_json == {"name": "Audited", "slug": "audited"}

    def test_update_name_and_slug(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner, name="Old", slug="old")
        admin = user_factory()
        membership_factory(org, admin, role=ROLE_ADMIN)
        result = OrganizationService(db_session).update(org.id, admin.id, {"name": "New", "slug": "new-slug"})
        assert (result.data.name, result.data.slug) == ("New", "new-slug")

    def test_update_rejects_taken_or_malformed_slug(self, db_session, user_factory, organization_factory):
        owner = user_factory(tier="pro")
        org = organization_factory(owner, slug="mine")
        organization_factory(owner, slug="taken")
        service = OrganizationService(db_session)

        taken = service.update(org.id, owner.id, {"slug": "taken"})
        assert taken.kind == ErrorKind.CONFLICT
        malformed = service.update(org.id, owner.id, {"slug": "Not Valid"})
        assert malformed.kind == ErrorKind.VALIDATION_ERROR
        assert malformed.error == "Slug can only contain lowercase letters, numbers, and hyphens"
        assert db_session.get(models.Organization, org.id).slug == "mine"

    def test_member_cannot_update(self, db_session, user_factory, organization_factory, membership_factory):
        org = organization_factory(user_factory())
        member = user_factory()
        membership_factory(org, member)
        assert OrganizationService(db_session).update(org.id, member.id, {"name": "Mine"}).kind == ErrorKind.UNAUTHORIZED

    def test_only_owner_deletes(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        admin = user_factory()
        membership_factory(org, admin, role=ROLE_ADMIN)
        service = OrganizationService(db_session)
        assert service.delete(org.id, admin.id).kind == ErrorKind.UNAUTHORIZED
        assert db_session.get(models.Organization, org.id) is not None

    def test_delete_cascades_to_scoped_rows(
        self, db_session, user_factory, organization_factory, membership_factory, invitation_factory, snippet_factory
    ):
        owner = user_factory()
        org = organization_factory(owner)
        membership_factory(org, user_factory())
        invitation_factory(org, owner, "pending@example.com")
        snippet_factory(owner, organization=org, visibility="team", tags=["ops"])
        org_id = org.id

        assert OrganizationService(db_session).delete(org_id, owner.id).ok
        db_session.expire_all()
        assert db_session.query(models.Organization).filter_by(id=org_id).count() == 0
        assert db_session.query(models.OrganizationMembership).filter_by(organization_id=org_id).count() == 0
        assert db_session.query(models.OrganizationInvitation).filter_by(organization_id=org_id).count() == 0
        assert db_session.query(models.Snippet).filter_by(organization_id=org_id).count() == 0
        assert db_session.query(models.Tag).filter_by(organization_id=org_id).count() == 0

        row = db_session.query(models.AuditLog).filter_by(action_type=AuditAction.ORGANIZATION_DELETE.value).one()
        assert row.organization_id is None
        assert row.target_id == org_id


class TestOwnership:
    def test_transfer_keeps_exactly_one_owner(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        successor = user_factory()
        membership_factory(org, successor)

        result = OrganizationService(db_session).transfer_ownership(org.id, owner.id, {"user_id": str(successor.id)})
        assert result.ok, result
        assert result.data["owner_id"] == successor.id
        roles = _roles(db_session, org.id)
        assert roles == {owner.id: ROLE_ADMIN, successor.id: ROLE_OWNER}
        assert list(roles.values()).count(ROLE_OWNER) == 1

    def test_transfer_to_self(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        result = OrganizationService(db_session).transfer_ownership(org.id, owner.id, {"user_id": str(owner.id)})
        assert result.kind == ErrorKind.VALIDATION_ERROR

    def test_transfer_to_non_member(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        outsider = user_factory()
        result = OrganizationService(db_session).transfer_ownership(org.id, owner.id, {"user_id": str(outsider.id)})
        assert result.kind == ErrorKind.NOT_FOUND
        assert _roles(db_session, org.id) == {owner.id: ROLE_OWNER}

    def test_admin_cannot_transfer(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        admin = user_factory()
        membership_factory(org, admin, role=ROLE_ADMIN)
        result = OrganizationService(db_session).transfer_ownership(org.id, admin.id, {"user_id": str(admin.id)})
        assert result.kind == ErrorKind.UNAUTHORIZED

    def test_former_owner_loses_owner_powers(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        successor = user_factory()
        membership_factory(org, successor)
        service = OrganizationService(db_session)
        service.transfer_ownership(org.id, owner.id, {"user_id": str(successor.id)})

        assert service.delete(org.id, owner.id).kind == ErrorKind.UNAUTHORIZED
        again = service.transfer_ownership(org.id, owner.id, {"user_id": str(successor.id)})
        assert again.kind == ErrorKind.UNAUTHORIZED


class TestMembershipAdministration:
    def test_remove_member(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        assert OrganizationService(db_session).remove_member(org.id, member.id, owner.id).ok
        assert member.id not in _roles(db_session, org.id)

    def test_owner_cannot_be_removed(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        admin = user_factory()
        membership_factory(org, admin, role=ROLE_ADMIN)
        result = OrganizationService(db_session).remove_member(org.id, owner.id, admin.id)
        assert result.kind == ErrorKind.UNAUTHORIZED
        assert result.error == "Cannot remove the organization owner"

    def test_member_cannot_remove_others(self, db_session, user_factory, organization_factory, membership_factory):
        org = organization_factory(user_factory())
        member, other = user_factory(), user_factory()
        membership_factory(org, member)
        membership_factory(org, other)
        assert OrganizationService(db_session).remove_member(org.id, other.id, member.id).kind == ErrorKind.UNAUTHORIZED

    def test_remove_unknown_member(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        assert OrganizationService(db_session).remove_member(org.id, uuid.uuid4(), owner.id).kind == ErrorKind.NOT_FOUND

    def test_owner_changes_roles(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        service = OrganizationService(db_session)

        assert service.update_member_role(org.id, member.id, owner.id, {"role": "Admin"}).data["role"] == ROLE_ADMIN
        assert _roles(db_session, org.id)[member.id] == ROLE_ADMIN
        assert service.update_member_role(org.id, member.id, owner.id, {"role": "member"}).ok
        assert _roles(db_session, org.id)[member.id] == ROLE_MEMBER

    def test_admin_cannot_change_roles(self, db_session, user_factory, organization_factory, membership_factory):
        org = organization_factory(user_factory())
        admin, member = user_factory(), user_factory()
        membership_factory(org, admin, role=ROLE_ADMIN)
        membership_factory(org, member)
        result = OrganizationService(db_session).update_member_role(org.id, member.id, admin.id, {"role": "admin"})
        assert result.kind == ErrorKind.UNAUTHORIZED

    def test_owner_cannot_demote_self(self, db_session, user_factory, organization_factory):
        owner = user_factory()
        org = organization_factory(owner)
        result = OrganizationService(db_session).update_member_role(org.id, owner.id, owner.id, {"role": "member"})
        assert result.kind == ErrorKind.VALIDATION_ERROR
        assert _roles(db_session, org.id) == {owner.id: ROLE_OWNER}

    def test_invalid_role(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        result = OrganizationService(db_session).update_member_role(org.id, member.id, owner.id, {"role": "superuser"})
        assert result.kind == ErrorKind.VALIDATION_ERROR
        assert result.error == "Invalid role"

    def test_granting_owner_transfers_ownership(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner)
        member = user_factory()
        membership_factory(org, member)
        assert OrganizationService(db_session).update_member_role(org.id, member.id, owner.id, {"role": "owner"}).ok
        assert _roles(db_session, org.id) == {owner.id: ROLE_ADMIN, member.id: ROLE_OWNER}


class TestOrganizationReads:
    def test_get_by_slug_or_id(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner, slug="acme")
        member = user_factory()
        membership_factory(org, member)
        service = OrganizationService(db_session)

        by_slug = service.get("acme", member.id).data
        by_id = service.get(str(org.id), owner.id).data
        assert by_slug["organization"].id == by_id["organization"].id == org.id
        assert (by_slug["role"], by_id["role"]) == (ROLE_MEMBER, ROLE_OWNER)
        assert by_slug["member_count"] == 2

    def test_get_hides_from_outsiders(self, db_session, user_factory, organization_factory):
        organization_factory(user_factory(), slug="private-club")
        service = OrganizationService(db_session)
        outsider = user_factory()
        assert service.get("private-club", outsider.id).kind == ErrorKind.UNAUTHORIZED
        assert service.get("nowhere", outsider.id).kind == ErrorKind.NOT_FOUND

    def test_list_members_and_memberships(self, db_session, user_factory, organization_factory, membership_factory):
        owner = user_factory()
        org = organization_factory(owner, name="Acme", slug="acme")
        member = user_factory()
        membership_factory(org, member)
        service = OrganizationService(db_session)

        members = service.list_members(org.id, member.id).data
        assert {(m.user_id, m.role) for m in members} == {(owner.id, ROLE_OWNER), (member.id, ROLE_MEMBER)}
        assert service.list_members(org.id, user_factory().id).kind == ErrorKind.UNAUTHORIZED

        summaries = service.list_for_user(member.id).data
        assert [(s.slug, s.role) for s in summaries] == [("acme", ROLE_MEMBER)]
