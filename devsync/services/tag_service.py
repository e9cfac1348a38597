"""
Tag scope resolution: find-or-create tags inside a namespace.

Creation is optimistic: look the tag up, insert when missing, and when the
insert loses a race against a concurrent request (unique violation) read the
winner's row instead. No locks are taken.
"""

import uuid
import logging
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from devsync.db import models, schemas
from devsync.db.repositories import UniqueViolation
from devsync.db.repositories import tags as tag_repo
from devsync.results import Result, success
from devsync.services.access_policy import AccessPolicy
from devsync.services.common import guarded, unauthorized
from devsync.utils.tags import normalize_tag, normalize_tags

logger = logging.getLogger(__name__)

TAG_SEARCH_LIMIT = 10


class TagService:
    """Tag lookups scoped to the personal namespace or one organization."""

    def __init__(self, db: Session, repository=tag_repo):
        self.db = db
        self.repo = repository

    def get_or_create(self, name: str, organization_id: Optional[uuid.UUID]) -> models.Tag:
        """Return the tag ``name`` in the given scope, creating it if needed.

        Raises:
            ValueError: If the name is blank after normalization
        """
        normalized = normalize_tag(name)
        if not normalized:
            raise ValueError("Tag name is required")

        tag = self.repo.get_tag(self.db, normalized, organization_id)
        if tag is not None:
            return tag
        try:
            return self.repo.create_tag(self.db, normalized, organization_id)
        except UniqueViolation:
            logger.debug("Tag %r in scope %s created concurrently; re-reading", normalized, organization_id)
            tag = self.repo.get_tag(self.db, normalized, organization_id)
            if tag is None:
                raise
            return tag

    def resolve_many(self, names: Iterable[str], organization_id: Optional[uuid.UUID]) -> List[models.Tag]:
        return [self.get_or_create(name, organization_id) for name in normalize_tags(names)]

    @guarded
    def search(self, query: Optional[str], organization_id: Optional[uuid.UUID], acting_user_id: uuid.UUID) -> Result:
        """Tags in scope whose name contains ``query``, most used first."""
        if organization_id is not None and not AccessPolicy(self.db).is_member(acting_user_id, organization_id):
            return unauthorized("You are not a member of this organization")
        rows = self.repo.search_tags(self.db, normalize_tag(query), organization_id, limit=TAG_SEARCH_LIMIT)
        return success([
            schemas.TagSearchResult(
                id=tag.id,
                name=tag.name,
                organization_id=tag.organization_id,
                usage_count=int(usage or 0),
            )
            for tag, usage in rows
        ])
