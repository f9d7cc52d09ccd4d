"""Pydantic schemas for account registration, verification and login."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Field must not be empty")
    return v


class EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)


class RegisterRequest(EmailRequest):
    name: str
    age: int
    password: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Password must not be empty")
        return v


class LoginRequest(BaseModel):
    # No address check: an unknown login is InvalidCredentials, not a 400
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class VerifyCodeRequest(EmailRequest):
    code: str

    @field_validator("code")
    @classmethod
    def _code(cls, v: str) -> str:
        return _required_text(v)


class ResetPasswordRequest(VerifyCodeRequest):
    new_password: str = Field(alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("new_password")
    @classmethod
    def _new_password(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Password must not be empty")
        return v


class MessageResponse(BaseModel):
    success: bool = True
    message: str | None = None


class CodeDispatchResponse(MessageResponse):
    """Returned by flows that send a code.

    ``simulatedCode`` is only present when no mail transport is configured.
    """

    simulated_code: str | None = Field(default=None, serialization_alias="simulatedCode")


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    age: int
    role: str
    is_verified: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}
