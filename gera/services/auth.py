"""
Account lifecycle: register -> verify -> login, plus password reset.

Per-user states are ``PendingVerification`` (``is_verified=False``) and
``Verified``. Password reset is a side channel and never changes the state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from gera.core.config import settings
from gera.core.exceptions import (AccessDenied, InvalidAge, InvalidCredentials,
                                  NotVerified, UnknownEmail)
from gera.core.security import (create_access_token, get_password_hash,
                                verify_password)
from gera.models.user import MAX_AGE, MIN_AGE, ROLE_ADMIN, ROLE_USER, User
from gera.services.credentials import CredentialStore, normalise_email
from gera.services.notifier import Notifier
from gera.services.verification import CodePurpose, VerificationCodeRegistry

logger = logging.getLogger(__name__)

_MESSAGES = {
    CodePurpose.SIGNUP: (
        "Verify your email - GERA",
        "Your verification code is: {code}\n\nThis code expires in {ttl} minutes.",
    ),
    CodePurpose.PASSWORD_RESET: (
        "Reset your password - GERA",
        "Your password recovery code is: {code}\n\nThis code expires in {ttl} minutes.",
    ),
}


@dataclass(frozen=True)
class CodeDispatch:
    """Outcome of sending a code. ``code`` is set only for simulated delivery."""

    simulated: bool
    code: str | None = None


@dataclass(frozen=True)
class Session:
    token: str
    role: str


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        registry: VerificationCodeRegistry,
        notifier: Notifier,
        admin_email: str | None = None,
    ) -> None:
        self.users = CredentialStore(db)
        self.registry = registry
        self.notifier = notifier
        self.admin_email = normalise_email(admin_email or settings.ADMIN_EMAIL)

    # ── Helpers ─────────────────────────────────────────────────────
    def _role_for(self, email: str) -> str:
        return ROLE_ADMIN if normalise_email(email) == self.admin_email else ROLE_USER

    async def _dispatch(self, email: str, purpose: CodePurpose) -> CodeDispatch:
        code = self.registry.issue(email, purpose)
        subject, template = _MESSAGES[purpose]
        ttl_minutes = int(self.registry.ttl.total_seconds() // 60)
        delivery = await self.notifier.send(
            email, subject, template.format(code=code, ttl=ttl_minutes)
        )
        if delivery.simulated:
            logger.warning("Simulated %s code for %s: %s", purpose.value, email, code)
            return CodeDispatch(simulated=True, code=code)
        return CodeDispatch(simulated=False)

    async def _check_credentials(self, email: str, password: str) -> User:
        user = await self.users.find_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise InvalidCredentials()
        return user

    # ── Registration & verification ─────────────────────────────────
    async def register(self, name: str, email: str, age: int, password: str) -> CodeDispatch:
        if not MIN_AGE <= age <= MAX_AGE:
            raise InvalidAge()
        email = normalise_email(email)
        await self.users.create(
            email=email,
            name=name,
            age=age,
            hashed_password=get_password_hash(password),
            verified=False,
            role=self._role_for(email),
        )
        return await self._dispatch(email, CodePurpose.SIGNUP)

    async def resend_code(self, email: str) -> CodeDispatch:
        email = normalise_email(email)
        if await self.users.find_by_email(email) is None:
            raise UnknownEmail()
        return await self._dispatch(email, CodePurpose.SIGNUP)

    async def verify_code(self, email: str, code: str) -> None:
        email = normalise_email(email)
        self.registry.consume(email, CodePurpose.SIGNUP, code)
        await self.users.set_verified(email)
        logger.info("Verified email %s", email)

    # ── Sessions ────────────────────────────────────────────────────
    async def login(self, email: str, password: str) -> Session:
        user = await self._check_credentials(email, password)
        if not user.is_verified:
            raise NotVerified()
        token = create_access_token(user.id, user.email, user.role)
        logger.info("Login for user %d (%s)", user.id, user.email)
        return Session(token=token, role=user.role)

    async def admin_login(self, email: str, password: str) -> Session:
        user = await self._check_credentials(email, password)
        if user.email != self.admin_email:
            logger.warning("Admin login refused for %s", user.email)
            raise AccessDenied()
        if not user.is_verified:
            raise NotVerified()
        token = create_access_token(user.id, user.email, ROLE_ADMIN)
        logger.info("Admin login for %s", user.email)
        return Session(token=token, role=ROLE_ADMIN)

    # ── Password reset ──────────────────────────────────────────────
    async def request_password_reset(self, email: str) -> CodeDispatch:
        email = normalise_email(email)
        if await self.users.find_by_email(email) is None:
            raise UnknownEmail()
        return await self._dispatch(email, CodePurpose.PASSWORD_RESET)

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        email = normalise_email(email)
        self.registry.consume(email, CodePurpose.PASSWORD_RESET, code)
        await self.users.set_secret(email, get_password_hash(new_password))
        logger.info("Password reset for %s", email)

    # ── Bootstrap ───────────────────────────────────────────────────
    async def bootstrap_admin(self, password: str | None = None, name: str | None = None) -> bool:
        """Create the pre-verified administrator on first run. Returns True if created."""
        if await self.users.find_by_email(self.admin_email) is not None:
            return False
        await self.users.create(
            email=self.admin_email,
            name=name or settings.ADMIN_NAME,
            age=30,
            hashed_password=get_password_hash(password or settings.ADMIN_PASSWORD),
            verified=True,
            role=ROLE_ADMIN,
        )
        logger.info("Default admin created: %s (password: <redacted>)", self.admin_email)
        return True
