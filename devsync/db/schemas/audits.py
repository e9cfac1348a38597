import uuid
from typing import Any, Dict
from pydantic import BaseModel, Field


class AuditLogCreate(BaseModel):
    action_type: str
    status: str
    target_type: str | None = None
    target_id: uuid.UUID | None = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
