import uuid
from types import SimpleNamespace

import pytest

from devsync.services.access_policy import collection_accessible, snippet_readable, snippet_writable
from devsync.utils.scopes import (
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    VISIBILITY_TEAM,
    visibility_allowed,
)

ORG = uuid.uuid4()
CREATOR = uuid.uuid4()
OTHER = uuid.uuid4()


def _snippet(visibility, organization_id=None):
    return SimpleNamespace(user_id=CREATOR, organization_id=organization_id, visibility=visibility)


@pytest.mark.parametrize(
    "visibility,organization_id,allowed",
    [
        (VISIBILITY_PRIVATE, None, True),
        (VISIBILITY_PUBLIC, None, True),
        (VISIBILITY_TEAM, None, False),
        (VISIBILITY_PRIVATE, ORG, True),
        (VISIBILITY_TEAM, ORG, True),
        (VISIBILITY_PUBLIC, ORG, False),
    ],
)
def test_visibility_allowed_by_context(visibility, organization_id, allowed):
    assert visibility_allowed(visibility, organization_id) is allowed


class TestSnippetReadable:
    def test_public_is_readable_by_anyone(self):
        snippet = _snippet(VISIBILITY_PUBLIC)
        assert snippet_readable(snippet, OTHER, is_org_member=False)
        assert snippet_readable(snippet, None, is_org_member=False)

    def test_personal_private_only_creator(self):
        snippet = _snippet(VISIBILITY_PRIVATE)
        assert snippet_readable(snippet, CREATOR, is_org_member=False)
        assert not snippet_readable(snippet, OTHER, is_org_member=False)
        assert not snippet_readable(snippet, None, is_org_member=False)

    def test_org_private_only_creator_even_for_members(self):
        snippet = _snippet(VISIBILITY_PRIVATE, ORG)
        assert snippet_readable(snippet, CREATOR, is_org_member=True)
        assert not snippet_readable(snippet, OTHER, is_org_member=True)

    def test_team_requires_membership(self):
        snippet = _snippet(VISIBILITY_TEAM, ORG)
        assert snippet_readable(snippet, OTHER, is_org_member=True)
        assert not snippet_readable(snippet, OTHER, is_org_member=False)

    def test_only_creator_writes(self):
        snippet = _snippet(VISIBILITY_TEAM, ORG)
        assert snippet_writable(snippet, CREATOR)
        assert not snippet_writable(snippet, OTHER)
        assert not snippet_writable(snippet, None)


def test_collection_accessible():
    personal = SimpleNamespace(user_id=CREATOR, organization_id=None)
    shared = SimpleNamespace(user_id=CREATOR, organization_id=ORG)
    assert collection_accessible(personal, CREATOR, is_org_member=False)
    assert not collection_accessible(personal, OTHER, is_org_member=True)
    assert collection_accessible(shared, OTHER, is_org_member=True)
    assert not collection_accessible(shared, OTHER, is_org_member=False)
    assert not collection_accessible(shared, None, is_org_member=True)
