import pytest
from devsync.utils.role_permissions import (
    ALLOWED_ROLES,
    INVITABLE_ROLES,
    normalize_role,
    rank,
    role_satisfies,
)


class TestRoleHierarchy:
    """Unit tests for the owner > admin > member ladder."""

    def test_ranks_are_strictly_ordered(self):
        assert rank("owner") > rank("admin") > rank("member")

    @pytest.mark.parametrize(
        "role,required,expected",
        [
            ("owner", "owner", True),
            ("owner", "admin", True),
            ("owner", "member", True),
            ("admin", "owner", False),
            ("admin", "admin", True),
            ("admin", "member", True),
            ("member", "owner", False),
            ("member", "admin", False),
            ("member", "member", True),
        ],
    )
    def test_role_satisfies_matrix(self, role, required, expected):
        assert role_satisfies(role, required) is expected

    def test_missing_membership_satisfies_nothing(self):
        assert role_satisfies(None, "member") is False

    def test_rank_accepts_mixed_case(self):
        assert rank("ADMIN ") == rank("admin")
        assert normalize_role(" Owner") == "owner"
        assert normalize_role(None) == ""

    def test_rank_unknown_role_raises(self):
        with pytest.raises(ValueError, match="Unknown role: viewer"):
            rank("viewer")

    def test_owner_is_never_invitable(self):
        assert "owner" in ALLOWED_ROLES
        assert "owner" not in INVITABLE_ROLES
        assert INVITABLE_ROLES == {"admin", "member"}
