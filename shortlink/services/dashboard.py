"""Dashboard data service.

Collects an owner's links and the headline numbers shown next to them.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.repositories.base import RepositoryError
from shortlink.repositories.link_repository import LinkRepository
from shortlink.services.exceptions import InvalidOwnerError, PersistenceError

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)


class DashboardService:
    """Read-only aggregation over an owner's links."""

    def __init__(self, link_repository: LinkRepository):
        self.link_repository = link_repository

    async def get_dashboard_data(self, db: AsyncSession, owner_id: str) -> Dict[str, Any]:
        """
        Return the owner's links (newest first) and their stats.

        Raises:
            InvalidOwnerError: If no owner id is given
            PersistenceError: If the store fails
        """
        if not owner_id or not owner_id.strip():
            raise InvalidOwnerError("An owner id is required")

        since = datetime.now(timezone.utc) - RECENT_WINDOW
        try:
            links = await self.link_repository.get_links_by_owner(db, owner_id)
            totals = await self.link_repository.get_owner_stats(db, owner_id, since)
        except RepositoryError as e:
            logger.error(f"Error loading dashboard for owner {owner_id}: {e}")
            raise PersistenceError(f"Failed to fetch links: {e}", cause=e) from e

        return {
            "stats": {
                "total_links": totals["total_links"],
                "total_clicks": totals["total_clicks"],
                "links_last_7_days": totals["recent_links"],
            },
            "links": links,
        }
