"""
Tag search endpoint used by tag autocompletion.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from devsync.api.deps import get_current_user
from devsync.api.responses import respond
from devsync.db import models
from devsync.db.database import get_db
from devsync.services.tag_service import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("")
def search_tags(
    q: Optional[str] = Query(default=None),
    organization_id: Optional[uuid.UUID] = Query(default=None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Tags in the personal namespace, or in ``organization_id``'s namespace."""
    return respond(TagService(db).search(q, organization_id, user.id))
