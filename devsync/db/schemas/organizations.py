import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from devsync.utils.role_permissions import ALLOWED_ROLES, normalize_role
from devsync.utils.slugs import slug_format_error
from ._validators import required_text

ORGANIZATION_NAME_MAX_LENGTH = 100


class OrganizationCreate(BaseModel):
    name: str = Field(default="", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value):
        return required_text(value, "Name", ORGANIZATION_NAME_MAX_LENGTH)


class OrganizationUpdate(BaseModel):
    name: str | None = None
    slug: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value):
        if value is None:
            return None
        return required_text(value, "Name", ORGANIZATION_NAME_MAX_LENGTH)

    @field_validator("slug", mode="before")
    @classmethod
    def _check_slug(cls, value):
        if value is None:
            return None
        slug = str(value).strip()
        error = slug_format_error(slug)
        if error:
            raise ValueError(error)
        return slug


class Organization(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    created_by: uuid.UUID | None = None
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class OrganizationMembershipSummary(BaseModel):
    organization_id: uuid.UUID
    name: str
    slug: str
    role: str


class OrganizationMember(BaseModel):
    user_id: uuid.UUID
    email: str
    display_name: str | None = None
    role: str
    joined_at: datetime | None = None


class MemberRoleUpdate(BaseModel):
    role: str = Field(default="", validate_default=True)

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, value):
        role = normalize_role(value)
        if role not in ALLOWED_ROLES:
            raise ValueError("Invalid role")
        return role


class OwnershipTransfer(BaseModel):
    user_id: uuid.UUID


class OrganizationInvitationCreate(BaseModel):
    email: EmailStr = Field(default="", validate_default=True)
    role: str = "member"

    @field_validator("email", mode="before")
    @classmethod
    def _require_email(cls, value):
        return required_text(value, "Email")

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value):
        return value.lower()

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, value):
        role = normalize_role(value) or "member"
        if role not in ALLOWED_ROLES:
            raise ValueError("Invalid role")
        return role


class OrganizationInvitation(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    email: str
    role: str
    invited_by_user_id: uuid.UUID
    created_at: datetime | None = None
    expires_at: datetime
    model_config = ConfigDict(from_attributes=True)


class InvitationDetails(BaseModel):
    organization_id: uuid.UUID
    organization_name: str
    organization_slug: str
    email: str
    role: str
    inviter_name: str | None = None
    expires_at: datetime
    expired: bool
