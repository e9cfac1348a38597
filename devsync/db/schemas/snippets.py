import uuid
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from devsync.utils.scopes import ALL_VISIBILITIES, ORGANIZATION_VISIBILITIES, VISIBILITY_TEAM
from devsync.utils.tags import parse_tags
from ._validators import required_text, optional_text

TITLE_MAX_LENGTH = 200


def _check_visibility(value, allowed=ALL_VISIBILITIES):
    if value is None:
        return None
    visibility = str(value).strip().lower()
    if visibility not in allowed:
        raise ValueError("Invalid visibility")
    return visibility


class SnippetCreate(BaseModel):
    title: str = Field(default="", validate_default=True)
    description: str | None = None
    code: str = Field(default="", validate_default=True)
    language: str = Field(default="", validate_default=True)
    tags: List[str] = Field(default_factory=list)
    organization_id: uuid.UUID | None = None
    visibility: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value):
        return required_text(value, "Title", TITLE_MAX_LENGTH)

    @field_validator("code", mode="before")
    @classmethod
    def _check_code(cls, value):
        # Leading indentation is meaningful in code; only reject blank input
        if value is None or not str(value).strip():
            raise ValueError("Code is required")
        return str(value)

    @field_validator("language", mode="before")
    @classmethod
    def _check_language(cls, value):
        return required_text(value, "Language").lower()

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value):
        return optional_text(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _check_tags(cls, value):
        return parse_tags(value)

    @field_validator("visibility", mode="before")
    @classmethod
    def _check_visibility(cls, value):
        return _check_visibility(value)


class SnippetUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    code: str | None = None
    language: str | None = None
    tags: List[str] | None = None
    visibility: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value):
        return None if value is None else required_text(value, "Title", TITLE_MAX_LENGTH)

    @field_validator("code", mode="before")
    @classmethod
    def _check_code(cls, value):
        if value is None:
            return None
        if not str(value).strip():
            raise ValueError("Code is required")
        return str(value)

    @field_validator("language", mode="before")
    @classmethod
    def _check_language(cls, value):
        return None if value is None else required_text(value, "Language").lower()

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value):
        return optional_text(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _check_tags(cls, value):
        return None if value is None else parse_tags(value)

    @field_validator("visibility", mode="before")
    @classmethod
    def _check_visibility(cls, value):
        return _check_visibility(value)


class SnippetPromote(BaseModel):
    organization_id: uuid.UUID
    visibility: str = VISIBILITY_TEAM

    @field_validator("visibility", mode="before")
    @classmethod
    def _check_visibility(cls, value):
        if value is None:
            return VISIBILITY_TEAM
        return _check_visibility(value, ORGANIZATION_VISIBILITIES)


class Snippet(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID | None = None
    title: str
    description: str | None = None
    code: str
    language: str
    visibility: str
    tags: List[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
