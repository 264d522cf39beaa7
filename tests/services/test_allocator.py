"""Tests for short code allocation and link creation."""

import asyncio
import itertools
import re
from unittest.mock import AsyncMock, patch

import pytest

from shortlink.models.link import Link
from shortlink.repositories.base import DuplicateEntityError, RepositoryError
from shortlink.services.allocator import CodeAllocator
from shortlink.services.exceptions import (
    AllocationConflictError,
    InvalidOwnerError,
    InvalidURLError,
    PersistenceError,
)
from tests.utils import create_test_link


class InMemoryLinkRepository:
    """Link store that yields to the event loop between every read and write."""

    def __init__(self):
        self.links = {}

    async def short_code_exists(self, db, short_code):
        await asyncio.sleep(0)
        return short_code in self.links

    async def create_link(self, db, data):
        await asyncio.sleep(0)
        if data.short_code in self.links:
            raise DuplicateEntityError(Link, "short_code", data.short_code)
        link = Link(**data.model_dump())
        self.links[data.short_code] = link
        return link


@pytest.mark.service
class TestCodeAllocator:

    @pytest.fixture
    def allocator(self, link_repository):
        return CodeAllocator(link_repository)

    @pytest.mark.asyncio
    async def test_create_link(self, test_db, allocator, link_repository):
        link = await allocator.create_link(test_db, "example.com/page", "owner-1")

        assert re.fullmatch(r"[a-z0-9]{6}", link.short_code)
        assert link.original_url == "https://example.com/page"
        assert link.owner_id == "owner-1"
        assert link.click_count == 0
        assert link.id is not None

        stored = await link_repository.get_by_short_code(test_db, link.short_code)
        assert stored is not None
        assert stored.original_url == "https://example.com/page"

    @pytest.mark.asyncio
    async def test_create_link_keeps_http_scheme(self, test_db, allocator):
        link = await allocator.create_link(test_db, "  http://example.com  ", "owner-1")

        assert link.original_url == "http://example.com"

    @pytest.mark.asyncio
    async def test_create_link_invalid_url(self, test_db, allocator, link_repository):
        with pytest.raises(InvalidURLError):
            await allocator.create_link(test_db, "https://", "owner-1")

        assert await link_repository.count(test_db) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("owner_id", ["", "   "])
    async def test_create_link_requires_owner(self, test_db, allocator, link_repository, owner_id):
        with pytest.raises(InvalidOwnerError):
            await allocator.create_link(test_db, "example.com", owner_id)

        assert await link_repository.count(test_db) == 0

    @pytest.mark.asyncio
    async def test_retries_taken_codes(self, test_db, allocator):
        await create_test_link(test_db, short_code="aaaaaa")
        await create_test_link(test_db, short_code="bbbbbb")

        with patch(
            "shortlink.services.allocator.generate_candidate",
            side_effect=["aaaaaa", "bbbbbb", "cccccc"],
        ):
            code = await allocator.allocate_unique_code(test_db)

        assert code == "cccccc"

    @pytest.mark.asyncio
    async def test_falls_back_to_longer_code(self, test_db, allocator):
        await create_test_link(test_db, short_code="aaaaaa")

        with patch(
            "shortlink.services.allocator.generate_candidate",
            side_effect=["aaaaaa"] * 10 + ["abcdefgh"],
        ) as generate:
            code = await allocator.allocate_unique_code(test_db)

        assert code == "abcdefgh"
        assert generate.call_args_list[-1].args == (8,)

    @pytest.mark.asyncio
    async def test_falls_back_to_clock_code(self, test_db, allocator):
        await create_test_link(test_db, short_code="aaaaaa")
        await create_test_link(test_db, short_code="aaaaaaaa")

        with patch(
            "shortlink.services.allocator.generate_candidate",
            side_effect=["aaaaaa"] * 10 + ["aaaaaaaa"],
        ), patch(
            "shortlink.services.allocator.timestamp_candidate",
            return_value="loyw3v28zz",
        ):
            code = await allocator.allocate_unique_code(test_db)

        assert code == "loyw3v28zz"

    @pytest.mark.asyncio
    async def test_lost_insert_is_allocation_conflict(self):
        repository = AsyncMock()
        repository.short_code_exists.return_value = False
        repository.create_link.side_effect = DuplicateEntityError(Link, "short_code", "abc123")
        db = AsyncMock()

        with pytest.raises(AllocationConflictError) as exc_info:
            await CodeAllocator(repository).create_link(db, "example.com", "owner-1")

        assert isinstance(exc_info.value, PersistenceError)
        db.rollback.assert_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insert_failure_is_persistence_error(self):
        repository = AsyncMock()
        repository.short_code_exists.return_value = False
        repository.create_link.side_effect = RepositoryError("disk full")

        with pytest.raises(PersistenceError) as exc_info:
            await CodeAllocator(repository).create_link(AsyncMock(), "example.com", "owner-1")

        assert not isinstance(exc_info.value, AllocationConflictError)

    @pytest.mark.asyncio
    async def test_existence_check_failure_is_persistence_error(self):
        repository = AsyncMock()
        repository.short_code_exists.side_effect = RepositoryError("connection lost")

        with pytest.raises(PersistenceError):
            await CodeAllocator(repository).create_link(AsyncMock(), "example.com", "owner-1")

        repository.create_link.assert_not_awaited()


@pytest.mark.service
class TestConcurrentAllocation:

    @pytest.mark.asyncio
    async def test_concurrent_creations_never_share_a_code(self):
        repository = InMemoryLinkRepository()
        allocator = CodeAllocator(repository)
        # Few candidates for many creators forces check-then-insert races
        candidates = itertools.cycle(["aaa111", "bbb222", "ccc333"])

        with patch(
            "shortlink.services.allocator.generate_candidate",
            side_effect=lambda length=None: next(candidates),
        ), patch(
            "shortlink.services.allocator.timestamp_candidate",
            return_value="ddd444",
        ):
            results = await asyncio.gather(
                *(allocator.create_link(AsyncMock(), f"example.com/{i}", f"owner-{i}") for i in range(20)),
                return_exceptions=True,
            )

        created = [r for r in results if isinstance(r, Link)]
        failures = [r for r in results if not isinstance(r, Link)]

        assert created
        assert all(isinstance(f, AllocationConflictError) for f in failures)
        codes = [link.short_code for link in created]
        assert len(codes) == len(set(codes))
        assert len(repository.links) == len(created)
        for link in created:
            assert repository.links[link.short_code].original_url == link.original_url

    @pytest.mark.asyncio
    async def test_sequential_creations_get_distinct_codes(self, test_db, link_repository):
        allocator = CodeAllocator(link_repository)

        links = [await allocator.create_link(test_db, f"example.com/{i}", "owner-1") for i in range(25)]

        codes = {link.short_code for link in links}
        assert len(codes) == 25
        assert await link_repository.count(test_db) == 25
