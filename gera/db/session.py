"""
Async SQLAlchemy engine, session factory and the request-scoped session dependency.

Production runs on PostgreSQL (asyncpg); the test suite swaps in aiosqlite
through ``DATABASE_URL`` and its own engine.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gera.core.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    # Queue pool sizing only applies to server databases
    if make_url(database_url).get_backend_name() == "postgresql":
        options.update(pool_size=10, max_overflow=10, pool_recycle=300)
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
