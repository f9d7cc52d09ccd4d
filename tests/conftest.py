"""
Shared test fixtures for the GERA backend test suite.

Each test gets its own in-memory aiosqlite database, upload directory,
code registry and (simulated) notifier, wired in through
``app.dependency_overrides``.
"""

import os
import sys
import tempfile
from datetime import timedelta
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="gera-uploads-")
os.environ["MAIL_USERNAME"] = ""
os.environ["MAIL_PASSWORD"] = ""
os.environ["ADMIN_EMAIL"] = "admin@admin.com"
os.environ["ADMIN_PASSWORD"] = "admin-secret"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gera.api.deps import get_code_registry, get_notifier, get_storage
from gera.core.limiter import limiter
from gera.core.security import create_access_token, pwd_context
from gera.db.base import Base
from gera.db.session import get_db
from gera.main import app
from gera.services.auth import AuthService
from gera.services.notifier import Notifier
from gera.services.verification import VerificationCodeRegistry
from gera.storage import LocalStorage

ADMIN_EMAIL = "admin@admin.com"
ADMIN_PASSWORD = "admin-secret"
MAX_TEST_UPLOAD = 1024

# Cheap hashes keep the suite fast; the scheme is unchanged.
pwd_context.update(bcrypt__rounds=4)
limiter.enabled = False


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "uploads", url_prefix="/uploads", max_size=MAX_TEST_UPLOAD)


@pytest.fixture
def registry() -> VerificationCodeRegistry:
    return VerificationCodeRegistry(ttl=timedelta(minutes=10))


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
async def async_client(
    session_factory, storage, registry, notifier
) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_code_registry] = lambda: registry
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Auth helpers ────────────────────────────────────────────────────
@pytest.fixture
async def admin_user(db_session, registry, notifier):
    auth = AuthService(db_session, registry, notifier, admin_email=ADMIN_EMAIL)
    await auth.bootstrap_admin(password=ADMIN_PASSWORD)
    return await auth.users.find_by_email(ADMIN_EMAIL)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    token = create_access_token(admin_user.id, admin_user.email, "admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict:
    token = create_access_token(99, "reader@example.com", "user")
    return {"Authorization": f"Bearer {token}"}
