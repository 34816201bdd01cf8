"""Account and session Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator, model_validator

from .common import APIModel, OkResponse


class _CredentialModel(APIModel):
    # Passwords are compared byte for byte.
    model_config = ConfigDict(str_strip_whitespace=False)


class SignupRequest(_CredentialModel):
    """Schema for creating a new account."""

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=1)

    @field_validator("first_name", "last_name")
    @classmethod
    def _required_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name required")
        return value

    @field_validator("email", "username")
    @classmethod
    def _normalize_identifier(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("email/username required")
        return value

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        local, _, domain = value.partition("@")
        if not local or not domain or " " in value:
            raise ValueError("invalid email address")
        return value


class LoginRequest(_CredentialModel):
    """Schema for starting a session.

    `identifier` may be a username or an email; `email` is accepted for older
    clients.
    """

    identifier: str | None = None
    email: str | None = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _require_identifier(self) -> LoginRequest:
        if not self.login_name:
            raise ValueError("id/email and password required")
        return self

    @property
    def login_name(self) -> str:
        return (self.identifier or self.email or "").strip().lower()


class ChangePasswordRequest(_CredentialModel):
    """Schema for replacing the caller's password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class UserResponse(APIModel):
    """Schema for the account returned by the API; never carries the hash."""

    id: int
    email: str
    username: str | None
    first_name: str | None
    last_name: str | None
    role: str
    created_at: datetime


class UserEnvelope(OkResponse):
    user: UserResponse
