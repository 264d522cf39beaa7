"""Test fixtures for the shortlink application."""

import os

# Settings are read once at import time
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("BASE_URL", "http://testserver")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from shortlink.db.base import configure_session_factory, create_session_factory
from shortlink.db.session import get_db
from shortlink.main import app as main_app
# Import models to ensure they're registered with SQLModel metadata
from shortlink.models.link import Link  # noqa: F401
from shortlink.repositories.link_repository import LinkRepository


# Test database URL - using SQLite in-memory
TEST_SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory SQLite database for each test."""
    engine = create_async_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine, also used by background work."""
    factory = create_session_factory(test_engine)
    configure_session_factory(factory)
    yield factory
    configure_session_factory(None)


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session standing in for a request-scoped session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def link_repository() -> LinkRepository:
    return LinkRepository()


@pytest.fixture
def override_get_db(test_db):
    """Override the get_db dependency for testing."""
    async def _override_get_db():
        yield test_db

    return _override_get_db


@pytest.fixture
def test_app(override_get_db) -> FastAPI:
    """Create FastAPI test app with overridden dependencies."""
    app = main_app
    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client calling the app in-process; background tasks finish before a call returns."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
