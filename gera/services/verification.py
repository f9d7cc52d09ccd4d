"""
Verification code registry: short-lived, single-use numeric codes.

Codes live in process memory only, one table per purpose, keyed by the
normalised email. Expiry is lazy: a code is dead once ``now > expires_at``
and is only ever discarded on the next issue or consume for its key.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from gera.core.exceptions import InvalidOrExpired

logger = logging.getLogger(__name__)

CODE_LENGTH = 6


class CodePurpose(str, Enum):
    SIGNUP = "signup"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class _Entry:
    code: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


class VerificationCodeRegistry:
    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._tables: dict[CodePurpose, dict[str, _Entry]] = {p: {} for p in CodePurpose}

    def issue(self, email: str, purpose: CodePurpose) -> str:
        """Generate a fresh code for ``(email, purpose)``, replacing any previous one."""
        key = email.strip().lower()
        code = generate_code()
        entry = _Entry(code=code, expires_at=self._clock() + self.ttl)
        with self._lock:
            self._tables[purpose][key] = entry
        logger.debug("Issued %s code for %s", purpose.value, key)
        return code

    def consume(self, email: str, purpose: CodePurpose, supplied: str) -> None:
        """Accept ``supplied`` exactly once.

        Raises ``InvalidOrExpired`` if no code is live for the key, if it does
        not match, or if it has expired. A wrong guess leaves the live code
        in place.
        """
        key = email.strip().lower()
        supplied = (supplied or "").strip()
        with self._lock:
            table = self._tables[purpose]
            entry = table.get(key)
            if entry is None:
                raise InvalidOrExpired()
            if self._clock() > entry.expires_at:
                del table[key]
                raise InvalidOrExpired()
            if not hmac.compare_digest(entry.code.encode(), supplied.encode()):
                raise InvalidOrExpired()
            del table[key]

    def peek_expiry(self, email: str, purpose: CodePurpose) -> datetime | None:
        with self._lock:
            entry = self._tables[purpose].get(email.strip().lower())
        return entry.expires_at if entry else None

    def clear(self) -> None:
        with self._lock:
            for table in self._tables.values():
                table.clear()
