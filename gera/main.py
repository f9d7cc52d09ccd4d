"""
GERA backend: Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from gera.api.api import api_router
from gera.api.deps import get_code_registry, get_notifier
from gera.core.config import settings
from gera.core.exceptions import register_exception_handlers
from gera.core.limiter import limiter
from gera.db.base import Base
from gera.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from gera.models.article import Article  # noqa: F401
from gera.models.lead import Lead  # noqa: F401
from gera.models.user import User  # noqa: F401
from gera.services.auth import AuthService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the administrator account on first run
    async with async_session_factory() as session:
        await AuthService(session, get_code_registry(), get_notifier()).bootstrap_admin()

    if not get_notifier().configured:
        logger.warning("Mail transport not configured; verification codes are simulated")

    logger.info("🚀 %s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="News portal content & leads backend",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Rate limiting for the credential / code endpoints
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Mount API
    application.include_router(api_router, prefix=settings.API_PREFIX)

    # Uploaded images
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    application.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR),
        name="uploads",
    )

    @application.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "message": f"{settings.PROJECT_NAME} API running",
            "time": datetime.now(timezone.utc).isoformat(),
        }

    return application


app = create_app()
