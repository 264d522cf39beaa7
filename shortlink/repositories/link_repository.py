"""Link Repository for the shortlink application.

This module provides the LinkRepository class for database operations related to Link models.
Following the Repository pattern, it abstracts the store round-trips made by the
allocator and the resolver.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import case, desc, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.core.config import settings
from shortlink.models.link import Link, LinkCreate
from shortlink.repositories.base import BaseRepository, DuplicateEntityError, RepositoryError


class IncrementUnavailableError(RepositoryError):
    """The atomic click counter function could not be called."""
    pass


class LinkRepository(BaseRepository[Link, LinkCreate]):
    """
    Repository for Link model database operations.

    Every method is a single store round-trip inside the caller's session;
    committing is left to the caller.
    """

    def __init__(self):
        """Initialize the repository with the Link model type."""
        super().__init__(Link)

    async def create_link(
        self,
        db: AsyncSession,
        data: Union[LinkCreate, Dict[str, Any]]
    ) -> Link:
        """
        Insert a new link row.

        The unique constraint on ``short_code`` decides whether the insert wins;
        no existence check is made here.

        Raises:
            DuplicateEntityError: If the short code is already taken
            RepositoryError: On other database errors
        """
        try:
            return await self.create(db, data)
        except IntegrityError as e:
            message = str(e).lower()
            if "unique constraint" in message or "duplicate key" in message:
                short_code = data.short_code if isinstance(data, LinkCreate) else data.get("short_code")
                raise DuplicateEntityError(self.model_type, "short_code", short_code) from e
            raise RepositoryError(f"Database error creating link: {e}") from e

    async def get_by_short_code(self, db: AsyncSession, short_code: str) -> Optional[Link]:
        """
        Find a link by its short code.

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = select(self.model_type).where(self.model_type.short_code == short_code)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving link by short code: {e}") from e

    async def short_code_exists(self, db: AsyncSession, short_code: str) -> bool:
        """Check whether a short code is already stored."""
        return await self.exists(db, short_code=short_code)

    async def increment_click_count_atomic(self, db: AsyncSession, short_code: str) -> Optional[int]:
        """
        Increment the click count through the server-side counter function.

        The function runs ``UPDATE ... SET click_count = click_count + 1`` inside
        the database and returns the new count, or NULL when no row matches.

        Returns:
            The new click count, or None if no link has this code

        Raises:
            IncrementUnavailableError: If the function cannot be called
        """
        counter = getattr(func, settings.CLICK_COUNT_FUNCTION)
        try:
            result = await db.execute(select(counter(short_code)))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise IncrementUnavailableError(
                f"Atomic click counter '{settings.CLICK_COUNT_FUNCTION}' unavailable: {e}"
            ) from e

    async def get_click_count(self, db: AsyncSession, short_code: str) -> Optional[int]:
        """
        Read the current click count.

        Returns:
            The click count, or None if no link has this code

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = select(self.model_type.click_count).where(self.model_type.short_code == short_code)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error reading click count: {e}") from e

    async def set_click_count(self, db: AsyncSession, short_code: str, click_count: int) -> int:
        """
        Overwrite the click count of a link.

        Returns:
            Number of rows updated

        Raises:
            RepositoryError: On database errors
        """
        try:
            stmt = (
                update(self.model_type)
                .where(self.model_type.short_code == short_code)
                .values(click_count=click_count)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error writing click count: {e}") from e

    async def get_links_by_owner(self, db: AsyncSession, owner_id: str) -> List[Link]:
        """
        Get every link created by an owner, newest first.

        Raises:
            RepositoryError: On database errors
        """
        return await self.list_where(
            db,
            self.model_type.owner_id == owner_id,
            order_by=[desc(self.model_type.created_at), desc(self.model_type.id)],
        )

    async def get_owner_stats(self, db: AsyncSession, owner_id: str, since: datetime) -> Dict[str, int]:
        """
        Aggregate link and click totals for an owner in one query.

        Args:
            db: Database session
            owner_id: Owner to aggregate for
            since: Links created at or after this moment count as recent

        Returns:
            Dict with total_links, total_clicks and recent_links

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = select(
                func.count(self.model_type.id),
                func.coalesce(func.sum(self.model_type.click_count), 0),
                func.coalesce(func.sum(case((self.model_type.created_at >= since, 1), else_=0)), 0),
            ).where(self.model_type.owner_id == owner_id)
            result = await db.execute(query)
            total_links, total_clicks, recent_links = result.one()
            return {
                "total_links": int(total_links),
                "total_clicks": int(total_clicks),
                "recent_links": int(recent_links),
            }
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error aggregating owner stats: {e}") from e
