"""
Audit log repository functions.

Stages audit rows alongside the mutations they describe.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from devsync.db import schemas, models


def create_audit_log(db: Session, audit_log: schemas.AuditLogCreate, actor_user_id: Optional[uuid.UUID], organization_id: Optional[uuid.UUID] = None):
    data = audit_log.model_dump(mode="json")
    metadata_payload = data.pop('metadata', None)
    db_audit_log = models.AuditLog(
        action_type=data["action_type"],
        status=data["status"],
        target_type=data.get("target_type"),
        target_id=audit_log.target_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata_json=metadata_payload,
    )
    # Staged only; persisted with the mutation it describes
    db.add(db_audit_log)
    db.flush()
    return db_audit_log

