"""
JWT session token issuing / validation and password hashing (bcrypt).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from gera.core.config import settings
from gera.core.exceptions import ExpiredToken, InvalidToken
from gera.schemas.token import TokenClaims

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
def create_access_token(
    user_id: int,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(
        {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "type": "access",
            "iat": now,
            "exp": expire,
        },
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenClaims:
    """Return the claims of a valid *access* token.

    Raises ``ExpiredToken`` once ``exp`` has passed and ``InvalidToken`` for a
    bad signature, a malformed token or a token of another type.
    """
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except JWTError as exc:
        raise InvalidToken() from exc

    if payload.get("type") != "access":
        raise InvalidToken()
    try:
        return TokenClaims.model_validate(payload)
    except PydanticValidationError as exc:
        raise InvalidToken() from exc
