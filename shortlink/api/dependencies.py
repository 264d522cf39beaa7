"""API dependencies for FastAPI.

This module provides dependency injection functions for FastAPI endpoints
to access service instances.
"""

from fastapi import Depends

from shortlink.core.config import settings
from shortlink.repositories.link_repository import LinkRepository
from shortlink.services.allocator import CodeAllocator
from shortlink.services.dashboard import DashboardService
from shortlink.services.redirect import RedirectService
from shortlink.services.resolver import LinkResolver


async def get_link_repository() -> LinkRepository:
    """Get an instance of the link repository."""
    return LinkRepository()


async def get_allocator(
    link_repo: LinkRepository = Depends(get_link_repository),
) -> CodeAllocator:
    """Get an instance of the code allocator."""
    return CodeAllocator(link_repository=link_repo)


async def get_resolver(
    link_repo: LinkRepository = Depends(get_link_repository),
) -> LinkResolver:
    """Get an instance of the link resolver."""
    return LinkResolver(link_repository=link_repo)


async def get_redirect_service(
    resolver: LinkResolver = Depends(get_resolver),
) -> RedirectService:
    """Get an instance of the redirect service."""
    return RedirectService(resolver=resolver)


async def get_dashboard_service(
    link_repo: LinkRepository = Depends(get_link_repository),
) -> DashboardService:
    """Get an instance of the dashboard service."""
    return DashboardService(link_repository=link_repo)


def get_base_url() -> str:
    """Get the base URL for shortened links."""
    return settings.BASE_URL.rstrip("/")
