"""Short code allocation service.

This module contains the CodeAllocator class which turns a raw URL and an
owner identity into a persisted, uniquely-keyed Link.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.core.config import settings
from shortlink.db.session import db_transaction
from shortlink.models.link import Link, LinkCreate
from shortlink.repositories.base import DuplicateEntityError, RepositoryError
from shortlink.repositories.link_repository import LinkRepository
from shortlink.services.codes import generate_candidate, normalize_url, timestamp_candidate
from shortlink.services.exceptions import (
    AllocationConflictError,
    InvalidCodeFormatError,
    InvalidOwnerError,
    PersistenceError,
)

logger = logging.getLogger(__name__)


class CodeAllocator:
    """
    Service for short code allocation and link creation.

    Existence checks only keep conflicts rare. The unique constraint on
    ``links.short_code`` decides, and a lost insert is reported as
    AllocationConflictError.
    """

    def __init__(self, link_repository: LinkRepository):
        """
        Initialize the allocator.

        Args:
            link_repository: Repository for link data access
        """
        self.link_repository = link_repository

    async def allocate_unique_code(self, db: AsyncSession) -> str:
        """
        Find a short code that is not stored yet.

        Tries ``CODE_MAX_ATTEMPTS`` random codes of ``CODE_LENGTH`` characters,
        then one of ``CODE_FALLBACK_LENGTH`` characters, and finally returns a
        clock-based code without checking it.

        Args:
            db: Database session

        Returns:
            str: A normalized short code

        Raises:
            PersistenceError: If an existence check fails
        """
        for _ in range(settings.CODE_MAX_ATTEMPTS):
            try:
                candidate = generate_candidate(settings.CODE_LENGTH)
            except InvalidCodeFormatError:
                continue
            if not await self._code_exists(db, candidate):
                return candidate

        try:
            candidate = generate_candidate(settings.CODE_FALLBACK_LENGTH)
        except InvalidCodeFormatError:
            candidate = None
        if candidate is not None and not await self._code_exists(db, candidate):
            return candidate

        # Unchecked; a collision here is caught by the unique constraint on insert
        candidate = timestamp_candidate()
        logger.warning(f"Short code space congested, using clock-based code '{candidate}'")
        return candidate

    @db_transaction(db_param_name="db")
    async def create_link(self, db: AsyncSession, raw_url: str, owner_id: str) -> Link:
        """
        Create a link for ``raw_url`` owned by ``owner_id``.

        Args:
            db: Database session
            raw_url: URL as submitted, with or without a scheme
            owner_id: Identity of the creating user

        Returns:
            Link: The stored link, including its id

        Raises:
            InvalidURLError: If the URL is not an absolute URL with a host
            InvalidOwnerError: If no owner identity is given
            AllocationConflictError: If a concurrent insert took the same code
            PersistenceError: If the store fails otherwise
        """
        original_url = normalize_url(raw_url)
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise InvalidOwnerError("An owner id is required to create a link")

        short_code = await self.allocate_unique_code(db)

        link_data = LinkCreate(
            owner_id=owner_id.strip(),
            short_code=short_code,
            original_url=original_url,
            click_count=0,
        )

        try:
            link = await self.link_repository.create_link(db, link_data)
        except DuplicateEntityError as e:
            logger.warning(f"Allocation conflict on short code '{short_code}'")
            raise AllocationConflictError(short_code, cause=e) from e
        except RepositoryError as e:
            logger.error(f"Error creating link: {e}")
            raise PersistenceError(f"Failed to create link: {e}", cause=e) from e

        logger.info(f"Created link '{link.short_code}' for owner {link.owner_id}")
        return link

    async def _code_exists(self, db: AsyncSession, short_code: str) -> bool:
        try:
            return await self.link_repository.short_code_exists(db, short_code)
        except RepositoryError as e:
            logger.error(f"Error checking short code '{short_code}': {e}")
            raise PersistenceError(f"Failed to check short code: {e}", cause=e) from e
