"""Tests for the serverless redirect handler.

The handler runs its own event loops, so these tests are synchronous and
use a file database without connection pooling.
"""

import asyncio
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from shortlink.db.base import create_session_factory
from shortlink.db.schema import init_db
from shortlink.handlers import serverless
from shortlink.repositories.link_repository import LinkRepository
from tests.utils import create_test_link


@pytest.fixture
def serverless_db(tmp_path, monkeypatch):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'links.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    factory = create_session_factory(engine)
    monkeypatch.setattr(serverless, "_session_factory", factory)
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def executor(monkeypatch):
    pool = ThreadPoolExecutor(max_workers=1)
    monkeypatch.setattr(serverless, "visit_executor", pool)
    yield pool
    pool.shutdown(wait=True)


def seed_link(factory, **kwargs):
    async def _seed():
        async with factory() as db:
            return await create_test_link(db, **kwargs)
    return asyncio.run(_seed())


def click_count(factory, short_code):
    async def _read():
        async with factory() as db:
            return await LinkRepository().get_click_count(db, short_code)
    return asyncio.run(_read())


@pytest.mark.handler
class TestServerlessHandler:

    def test_redirect(self, serverless_db, executor):
        seed_link(serverless_db, short_code="abc123", original_url="https://example.com/fn")

        response = serverless.handler({"pathParameters": {"shortCode": "abc123"}}, None)
        executor.shutdown(wait=True)

        assert response["statusCode"] == 301
        assert response["headers"]["Location"] == "https://example.com/fn"
        assert response["headers"]["Cache-Control"] == "public, max-age=3600"
        assert response["body"] == ""
        assert click_count(serverless_db, "abc123") == 1

    def test_path_fallback(self, serverless_db, executor):
        seed_link(serverless_db, short_code="abc123", original_url="https://example.com/fn")

        response = serverless.handler({"path": "/.netlify/functions/redirect/ABC123"}, None)

        assert response["statusCode"] == 301

    def test_missing_code(self, serverless_db, executor):
        response = serverless.handler({"pathParameters": {}}, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"]) == {"error": "Invalid short code"}

    def test_malformed_code(self, serverless_db, executor):
        response = serverless.handler({"pathParameters": {"shortcode": "a$"}}, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"]) == {"error": "Invalid short code format"}

    def test_unknown_code(self, serverless_db, executor):
        response = serverless.handler({"pathParameters": {"shortCode": "zzz999"}}, None)
        executor.shutdown(wait=True)

        assert response["statusCode"] == 404
        assert json.loads(response["body"]) == {"error": "Link not found"}
        assert response["headers"]["Content-Type"] == "application/json"

    def test_unexpected_error_is_500(self, serverless_db, executor):
        with patch.object(serverless, "_prepare", side_effect=RuntimeError("boom")):
            response = serverless.handler({"pathParameters": {"shortCode": "abc123"}}, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"error": "Internal server error"}

    def test_unexpected_error_is_logged(self, serverless_db, executor):
        failure = RuntimeError("boom")
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="ERROR")
        try:
            with patch.object(serverless, "_prepare", side_effect=failure):
                response = serverless.handler({"pathParameters": {"shortCode": "abc123"}}, None)
        finally:
            logger.remove(sink_id)

        assert response["statusCode"] == 500
        assert [record["message"] for record in records] == ["Unhandled error in handler: boom"]
        assert records[0]["exception"].value is failure

    def test_returns_before_visit_is_recorded(self, serverless_db, executor, monkeypatch):
        seed_link(serverless_db, short_code="abc123", original_url="https://example.com/fn")
        release = threading.Event()
        futures = []
        original_schedule = serverless.schedule_visit

        async def blocked_visit(resolver, short_code):
            release.wait(timeout=5)

        def capture(short_code):
            future = original_schedule(short_code)
            futures.append(future)
            return future

        monkeypatch.setattr(serverless, "record_visit_in_background", blocked_visit)
        monkeypatch.setattr(serverless, "schedule_visit", capture)

        try:
            response = serverless.handler({"pathParameters": {"shortCode": "abc123"}}, None)

            assert response["statusCode"] == 301
            assert len(futures) == 1
            assert not futures[0].done()
        finally:
            release.set()

        futures[0].result(timeout=5)
        assert click_count(serverless_db, "abc123") == 0


@pytest.mark.handler
class TestExtractShortCode:

    @pytest.mark.parametrize("event, expected", [
        ({"pathParameters": {"shortCode": "abc123"}}, "abc123"),
        ({"pathParameters": {"shortcode": "abc123"}}, "abc123"),
        ({"pathParameters": None, "path": "/r/abc123/"}, "abc123"),
        ({"path": "/"}, None),
        ({}, None),
        (None, None),
    ])
    def test_extract(self, event, expected):
        assert serverless.extract_short_code(event) == expected
