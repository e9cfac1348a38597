import uuid
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ._validators import required_text, optional_text

COLLECTION_NAME_MAX_LENGTH = 100
MOVE_UP = "up"
MOVE_DOWN = "down"


class CollectionCreate(BaseModel):
    name: str = Field(default="", validate_default=True)
    description: str | None = None
    organization_id: uuid.UUID | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value):
        return required_text(value, "Name", COLLECTION_NAME_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value):
        return optional_text(value)


class CollectionUpdate(BaseModel):
    name: str = Field(default="", validate_default=True)
    description: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value):
        return required_text(value, "Name", COLLECTION_NAME_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value):
        return optional_text(value)


class CollectionEntryCreate(BaseModel):
    snippet_id: uuid.UUID


class CollectionMove(BaseModel):
    direction: str = Field(default="", validate_default=True)

    @field_validator("direction", mode="before")
    @classmethod
    def _check_direction(cls, value):
        direction = str(value or "").strip().lower()
        if direction not in (MOVE_UP, MOVE_DOWN):
            raise ValueError("Direction must be 'up' or 'down'")
        return direction


class Collection(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID | None = None
    name: str
    description: str | None = None
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class CollectionEntry(BaseModel):
    snippet_id: uuid.UUID
    title: str
    order: int
    added_at: datetime | None = None


class CollectionDetail(Collection):
    snippets: List[CollectionEntry] = Field(default_factory=list)
