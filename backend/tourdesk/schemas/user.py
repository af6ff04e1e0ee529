"""User-related schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from tourdesk.models.user import UserRole


class UserRead(BaseModel):
    """Serialized user response; credentials never leave the server."""

    id: uuid.UUID
    name: str
    email: str
    photo: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserRecord(BaseModel):
    """Every field an administrator may write on a user."""

    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    photo: str = Field(default="default.jpg", min_length=1)
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class UserUpdate(BaseModel):
    """Administrative user changes, including role assignment."""

    name: str | None = None
    email: EmailStr | None = None
    photo: str | None = None
    role: UserRole | None = None


class UserSelfUpdate(BaseModel):
    """Profile fields a user may change on their own account."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: EmailStr | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _reject_password_fields(cls, data: object) -> object:
        if isinstance(data, dict) and {"password", "password_confirm"} & data.keys():
            raise ValueError(
                "This route is not for password updates. Please use /updateMyPassword."
            )
        return data
