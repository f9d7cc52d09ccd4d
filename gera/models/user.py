"""
User model: accounts, email verification state & role-based access control.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from gera.db.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"

MIN_AGE = 13
MAX_AGE = 120


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(f"age >= {MIN_AGE} AND age <= {MAX_AGE}", name="ck_users_age_range"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    age: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=ROLE_USER,
        server_default=ROLE_USER,
    )  # user | admin
    is_verified: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
