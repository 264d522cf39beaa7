"""Routes package initialization.

This module exports the route collection for the application.
"""

from fastapi import APIRouter

from shortlink.api.routes import health, links, redirect
from shortlink.core.config import settings

# Create root router
api_router = APIRouter()

api_router.include_router(
    links.router,
    prefix=settings.API_PREFIX
)

api_router.include_router(
    health.router,
    prefix=settings.API_PREFIX
)

# Redirect routes at the root path so short URLs are /{short_code}
api_router.include_router(
    redirect.router
)

__all__ = ["api_router"]
