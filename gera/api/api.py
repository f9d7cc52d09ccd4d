"""
API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from gera.api.endpoints import admin, articles, auth, health, leads

api_router = APIRouter()

# Registration, verification, login, password reset
api_router.include_router(auth.router)

# Public portal reads and advertiser submissions
api_router.include_router(articles.router)
api_router.include_router(leads.router)

# Admin-gated management
api_router.include_router(admin.router)

api_router.include_router(health.router)
