import uuid
from pydantic import BaseModel, ConfigDict


class Tag(BaseModel):
    id: uuid.UUID
    name: str
    organization_id: uuid.UUID | None = None
    model_config = ConfigDict(from_attributes=True)


class TagSearchResult(Tag):
    usage_count: int = 0
