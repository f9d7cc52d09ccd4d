"""
Credential store: persistence of user accounts over an AsyncSession.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gera.core.exceptions import DuplicateEmail
from gera.models.user import ROLE_USER, User

logger = logging.getLogger(__name__)


def normalise_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        email: str,
        name: str,
        age: int,
        hashed_password: str,
        verified: bool = False,
        role: str = ROLE_USER,
    ) -> User:
        """Insert a user. Raises ``DuplicateEmail`` when the address is taken."""
        email = normalise_email(email)
        if await self.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(
            email=email,
            name=name.strip(),
            age=age,
            hashed_password=hashed_password,
            is_verified=verified,
            role=role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            # Lost a race with a concurrent registration for the same address
            if await self.find_by_email(email) is not None:
                raise DuplicateEmail() from exc
            raise
        await self.db.refresh(user)
        logger.info("Created user %d (%s, role=%s)", user.id, email, role)
        return user

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == normalise_email(email))
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def set_verified(self, email: str) -> None:
        await self.db.execute(
            update(User).where(User.email == normalise_email(email)).values(is_verified=True)
        )
        await self.db.commit()

    async def set_secret(self, email: str, hashed_password: str) -> None:
        await self.db.execute(
            update(User)
            .where(User.email == normalise_email(email))
            .values(hashed_password=hashed_password)
        )
        await self.db.commit()

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar() or 0
