"""
Visibility constants and helpers.

Centralized definitions for snippet visibility levels to eliminate string
literals scattered across the codebase.
"""

from typing import FrozenSet, Optional

# Canonical visibility values stored in the database
VISIBILITY_PRIVATE = "private"
VISIBILITY_TEAM = "team"
VISIBILITY_PUBLIC = "public"

ALL_VISIBILITIES: FrozenSet[str] = frozenset({VISIBILITY_PRIVATE, VISIBILITY_TEAM, VISIBILITY_PUBLIC})

# Levels an organizational snippet may hold
ORGANIZATION_VISIBILITIES: FrozenSet[str] = frozenset({VISIBILITY_PRIVATE, VISIBILITY_TEAM})
# Levels a personal snippet may hold
PERSONAL_VISIBILITIES: FrozenSet[str] = frozenset({VISIBILITY_PRIVATE, VISIBILITY_PUBLIC})

# Filter value selecting personal (organization-less) resources
PERSONAL_FILTER = "personal"


def visibility_allowed(visibility: str, organization_id: Optional[object]) -> bool:
    """Return True if ``visibility`` is legal for a resource in the given context."""
    if organization_id is None:
        return visibility in PERSONAL_VISIBILITIES
    return visibility in ORGANIZATION_VISIBILITIES
