"""Link resolution service.

This module contains the LinkResolver class which resolves short codes to
links and records visits without ever failing the redirect.
"""

import logging
from typing import AsyncContextManager, Callable, NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.db.session import SessionManager
from shortlink.models.link import Link
from shortlink.repositories.base import RepositoryError
from shortlink.repositories.link_repository import IncrementUnavailableError, LinkRepository
from shortlink.services.codes import normalize_code
from shortlink.services.exceptions import LinkNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]


class VisitResult(NamedTuple):
    """Outcome of a visit record; unpacks as ``(success, error)``."""
    success: bool
    error: Optional[Exception] = None


class LinkResolver:
    """
    Service for short code resolution and visit counting.

    ``resolve`` reads inside the caller's session. ``record_visit`` opens its
    own transaction per store round-trip through ``session_scope`` so it can
    run detached from the request that triggered it.
    """

    def __init__(self, link_repository: LinkRepository, session_scope: Optional[SessionScope] = None):
        """
        Initialize the resolver.

        Args:
            link_repository: Repository for link data access
            session_scope: Factory of transactional session context managers,
                defaults to ``SessionManager.transaction_context``
        """
        self.link_repository = link_repository
        self.session_scope = session_scope or SessionManager.transaction_context

    async def resolve(self, db: AsyncSession, raw_code: str) -> Link:
        """
        Look up the link stored under a short code.

        The read does not touch ``click_count``.

        Args:
            db: Database session
            raw_code: Code as received, normalized before lookup

        Returns:
            Link: The stored link

        Raises:
            InvalidCodeFormatError: If the normalized code is too short
            LinkNotFoundError: If no link has this code
            PersistenceError: If the lookup fails
        """
        short_code = normalize_code(raw_code)

        try:
            link = await self.link_repository.get_by_short_code(db, short_code)
        except RepositoryError as e:
            logger.error(f"Error resolving short code '{short_code}': {e}")
            raise PersistenceError(f"Failed to resolve short code: {e}", cause=e) from e

        if link is None:
            raise LinkNotFoundError(f"Link '{short_code}' not found")
        return link

    async def record_visit(self, raw_code: str) -> VisitResult:
        """
        Add one to the click count of a link.

        Uses the database counter function when it is deployed. When calling
        it fails, falls back to reading the count and writing it back plus
        one; concurrent fallback visits can lose updates. A missing row is
        final and does not trigger the fallback.

        Never raises: every failure is logged and returned.

        Args:
            raw_code: Code as received, normalized identically to ``resolve``

        Returns:
            VisitResult: ``(True, None)`` or ``(False, error)``
        """
        try:
            short_code = normalize_code(raw_code)

            try:
                async with self.session_scope() as db:
                    new_count = await self.link_repository.increment_click_count_atomic(db, short_code)
            except IncrementUnavailableError as e:
                logger.warning(f"Falling back to read-then-write click count for '{short_code}': {e}")
                new_count = await self._increment_read_then_write(short_code)

            if new_count is None:
                raise LinkNotFoundError(f"Link '{short_code}' not found")

            logger.debug(f"Click count for '{short_code}' is now {new_count}")
            return VisitResult(True)
        except Exception as e:
            logger.error(f"Failed to increment click count for {raw_code!r}: {e}")
            return VisitResult(False, e)

    async def _increment_read_then_write(self, short_code: str) -> Optional[int]:
        async with self.session_scope() as db:
            current = await self.link_repository.get_click_count(db, short_code)
            if current is None:
                return None
            await self.link_repository.set_click_count(db, short_code, current + 1)
            return current + 1


async def record_visit_in_background(resolver: LinkResolver, short_code: str) -> None:
    """
    Detached visit recording used by the redirect adapters.

    The redirect has already been sent; the outcome is only logged.
    """
    success, error = await resolver.record_visit(short_code)
    if success:
        logger.debug(f"Recorded visit for '{short_code}'")
    else:
        logger.warning(f"Visit for '{short_code}' not recorded: {error}")
