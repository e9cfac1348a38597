"""
Domain-split SQLAlchemy models with a single aggregator.

Exposes `Base`, the timestamp helpers, and all ORM classes.
"""

from .base import Base, now_utc, ensure_aware  # re-export

# Domain models
from .users import User
from .organizations import Organization, OrganizationMembership, OrganizationInvitation
from .tags import Tag
from .snippets import Snippet, SnippetTag
from .collections import Collection, SnippetCollection
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    "ensure_aware",
    # users & orgs
    "User",
    "Organization",
    "OrganizationMembership",
    "OrganizationInvitation",
    # resources
    "Tag",
    "Snippet",
    "SnippetTag",
    "Collection",
    "SnippetCollection",
    # audit
    "AuditLog",
]
