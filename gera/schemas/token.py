"""Pydantic schemas for JWT session tokens and login responses."""

from __future__ import annotations

from pydantic import BaseModel


class TokenClaims(BaseModel):
    sub: str
    email: str
    role: str
    type: str = "access"
    exp: int

    @property
    def user_id(self) -> int:
        return int(self.sub)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    role: str
    token_type: str = "bearer"
