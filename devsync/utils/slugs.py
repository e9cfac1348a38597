"""
Organization slug helpers.

Slugs are URL identifiers derived from organization names; uniqueness is a
database concern checked by the callers.
"""
from __future__ import annotations

import re
from typing import Optional

SLUG_MIN_LENGTH = 2
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")


def generate_slug(name: str) -> str:
    """Return a URL-safe slug for ``name`` (may be empty for symbol-only names)."""
    slug = (name or "").lower().strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")


def slug_format_error(slug: Optional[str]) -> Optional[str]:
    """Return the first format problem with ``slug`` or None when it is well formed."""
    if not slug or len(slug) < SLUG_MIN_LENGTH:
        return "Slug must be at least 2 characters"
    if not SLUG_PATTERN.match(slug):
        return "Slug can only contain lowercase letters, numbers, and hyphens"
    return None


def slug_candidates(base: str, attempts: int = 10):
    """Yield ``base`` then ``base-2`` .. ``base-<attempts>``."""
    yield base
    for suffix in range(2, attempts + 1):
        yield f"{base}-{suffix}"
