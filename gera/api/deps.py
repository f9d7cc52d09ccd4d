"""
FastAPI dependencies: auth guards, database session and shared services.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gera.core.config import settings
from gera.core.exceptions import Forbidden, Unauthenticated
from gera.core.security import decode_access_token
from gera.db.session import get_db
from gera.schemas.token import TokenClaims
from gera.services.auth import AuthService
from gera.services.notifier import Notifier, build_notifier
from gera.services.records import ArticleManager, LeadManager
from gera.services.verification import VerificationCodeRegistry
from gera.storage import AbstractStorage, LocalStorage

# auto_error=False so a missing header maps onto our own Unauthenticated error
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/login", auto_error=False
)


# ── Process-wide collaborators ──────────────────────────────────────
@lru_cache
def get_code_registry() -> VerificationCodeRegistry:
    return VerificationCodeRegistry(
        ttl=timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES)
    )


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier(settings)


@lru_cache
def get_storage() -> AbstractStorage:
    return LocalStorage()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    registry: VerificationCodeRegistry = Depends(get_code_registry),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(db, registry, notifier)


def get_article_manager(
    db: AsyncSession = Depends(get_db),
    storage: AbstractStorage = Depends(get_storage),
) -> ArticleManager:
    return ArticleManager(db, storage)


def get_lead_manager(
    db: AsyncSession = Depends(get_db),
    storage: AbstractStorage = Depends(get_storage),
) -> LeadManager:
    return LeadManager(db, storage)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_token_claims(
    token: Optional[str] = Depends(oauth2_scheme),
) -> TokenClaims:
    """Validate the bearer token and return its claims."""
    if not token:
        raise Unauthenticated("Missing or malformed Authorization header")
    return decode_access_token(token)


async def require_admin(
    claims: TokenClaims = Depends(get_token_claims),
) -> TokenClaims:
    """Only allow tokens issued with the admin role to proceed."""
    if not claims.is_admin:
        raise Forbidden()
    return claims
