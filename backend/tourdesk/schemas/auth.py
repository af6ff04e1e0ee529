"""Authentication schemas."""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, model_validator

from tourdesk.schemas.user import UserRead

Password = Annotated[str, Field(min_length=8, max_length=128)]


def _passwords_match(password: str, password_confirm: str) -> None:
    if password != password_confirm:
        raise ValueError("Passwords are not the same!")


class Token(BaseModel):
    """Response body for access tokens."""

    access_token: str
    token_type: str = "bearer"


class AuthResponse(Token):
    """Token plus the authenticated user."""

    user: UserRead


class SignupRequest(BaseModel):
    """Self-service registration payload."""

    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: Password
    password_confirm: str

    @model_validator(mode="after")
    def _check_confirmation(self) -> "SignupRequest":
        _passwords_match(self.password, self.password_confirm)
        return self


class LoginRequest(BaseModel):
    """Login payload."""

    email: EmailStr
    password: str = Field(min_length=1)


class PasswordResetRequest(BaseModel):
    """Request body to initiate a password reset."""

    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Payload to finalize a password reset."""

    password: Password
    password_confirm: str

    @model_validator(mode="after")
    def _check_confirmation(self) -> "PasswordResetConfirm":
        _passwords_match(self.password, self.password_confirm)
        return self


class PasswordUpdateRequest(BaseModel):
    """Authenticated password change."""

    password_current: str = Field(min_length=1)
    password: Password
    password_confirm: str

    @model_validator(mode="after")
    def _check_confirmation(self) -> "PasswordUpdateRequest":
        _passwords_match(self.password, self.password_confirm)
        return self


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    status: str = "success"
    message: str
