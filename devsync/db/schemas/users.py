import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    id: uuid.UUID
    email: str
    display_name: str | None = None
    subscription_tier: str
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class LimitInfo(BaseModel):
    tier: str
    workspaces_owned: int
    workspace_limit: int | None = None
    can_create_workspace: bool


class MemberUsage(BaseModel):
    members: int
    pending_invites: int
    limit: int | None = None
    can_add_member: bool
