"""Service layer for the shortlink application.

This package contains service classes implementing the business logic of the application.
Services orchestrate interactions between repositories and provide domain-specific operations.
"""

from shortlink.services.allocator import CodeAllocator
from shortlink.services.dashboard import DashboardService
from shortlink.services.redirect import RedirectOutcome, RedirectService
from shortlink.services.resolver import LinkResolver, VisitResult

__all__ = [
    "CodeAllocator",
    "LinkResolver",
    "VisitResult",
    "RedirectService",
    "RedirectOutcome",
    "DashboardService",
]
