"""
Role hierarchy for organization members.

Roles form a strict ladder (owner > admin > member). Permission checks compare
ranks rather than enumerating role sets so a new rung only needs a rank.
"""

from typing import Dict, FrozenSet, Optional


# Central role constants to ensure consistency across the codebase
ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

ROLE_RANKS: Dict[str, int] = {
    ROLE_OWNER: 3,
    ROLE_ADMIN: 2,
    ROLE_MEMBER: 1,
}

ALLOWED_ROLES: FrozenSet[str] = frozenset(ROLE_RANKS.keys())

# Ownership is only ever granted by creation or transfer, never by invitation
INVITABLE_ROLES: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_MEMBER})


def normalize_role(role) -> str:
    """Return the canonical lowercase role string."""
    return str(role or "").strip().lower()


def rank(role) -> int:
    """
    Return the numeric rank of a role.

    Raises:
        ValueError: If role is not recognized
    """
    value = normalize_role(role)
    if value not in ROLE_RANKS:
        raise ValueError(f"Unknown role: {role}. Allowed roles: {sorted(ALLOWED_ROLES)}")
    return ROLE_RANKS[value]


def role_satisfies(role: Optional[str], required_role: str) -> bool:
    """Return True if ``role`` ranks at least as high as ``required_role``.

    A missing role (no membership) never satisfies anything.
    """
    if role is None:
        return False
    return rank(role) >= rank(required_role)
