"""
Domain-split Pydantic schemas with a single aggregator.

Request models validate and normalize incoming payloads; response models are
built from ORM rows (``from_attributes``) or assembled by the services.
"""

from pydantic import ValidationError

from .users import User, LimitInfo, MemberUsage
from .organizations import (
    OrganizationCreate,
    OrganizationUpdate,
    Organization,
    OrganizationMembershipSummary,
    OrganizationMember,
    MemberRoleUpdate,
    OwnershipTransfer,
    OrganizationInvitationCreate,
    OrganizationInvitation,
    InvitationDetails,
)
from .snippets import SnippetCreate, SnippetUpdate, SnippetPromote, Snippet
from .collections import (
    CollectionCreate,
    CollectionUpdate,
    CollectionEntryCreate,
    CollectionMove,
    Collection,
    CollectionEntry,
    CollectionDetail,
    MOVE_UP,
    MOVE_DOWN,
)
from .tags import Tag, TagSearchResult
from .audits import AuditLogCreate


def first_error_message(exc: ValidationError) -> str:
    """Return the first human-readable message of a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    message = str(first.get("msg") or "Invalid input")
    if message.startswith("value is not a valid email address"):
        return "Invalid email address"
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "__root__")
    return f"{field}: {message}" if field else message


__all__ = [
    "User",
    "LimitInfo",
    "MemberUsage",
    "OrganizationCreate",
    "OrganizationUpdate",
    "Organization",
    "OrganizationMembershipSummary",
    "OrganizationMember",
    "MemberRoleUpdate",
    "OwnershipTransfer",
    "OrganizationInvitationCreate",
    "OrganizationInvitation",
    "InvitationDetails",
    "SnippetCreate",
    "SnippetUpdate",
    "SnippetPromote",
    "Snippet",
    "CollectionCreate",
    "CollectionUpdate",
    "CollectionEntryCreate",
    "CollectionMove",
    "Collection",
    "CollectionEntry",
    "CollectionDetail",
    "MOVE_UP",
    "MOVE_DOWN",
    "Tag",
    "TagSearchResult",
    "AuditLogCreate",
    "first_error_message",
]
