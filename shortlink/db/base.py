"""Database base configuration for SQLAlchemy with SQLModel.

This module provides base database configuration for async SQLAlchemy with SQLModel.
It includes:
- Engine configuration per environment
- The shared session factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from shortlink.core.config import settings

logger = logging.getLogger(__name__)

# Mapping of environment to SQLAlchemy engine configurations
ENGINE_CONFIGS: Dict[str, Dict[str, Any]] = {
    "development": {
        "echo": settings.DB_ECHO,
        "pool_size": settings.POSTGRES_POOL_SIZE,
        "max_overflow": settings.POSTGRES_POOL_MAX_OVERFLOW,
        "pool_timeout": settings.POSTGRES_POOL_TIMEOUT,
        "pool_recycle": settings.POSTGRES_POOL_RECYCLE,
        "pool_pre_ping": True,
    },
    "production": {
        "echo": False,
        "pool_size": settings.POSTGRES_POOL_SIZE,
        "max_overflow": settings.POSTGRES_POOL_MAX_OVERFLOW,
        "pool_timeout": settings.POSTGRES_POOL_TIMEOUT,
        "pool_recycle": settings.POSTGRES_POOL_RECYCLE,
        "pool_pre_ping": True,
    },
    "testing": {
        "echo": False,
        "poolclass": NullPool,
    },
}

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine_config() -> Dict[str, Any]:
    """Get the appropriate engine configuration based on the environment.

    Returns:
        Dict: Engine configuration parameters for the current environment.
    """
    env = settings.ENVIRONMENT.value
    return ENGINE_CONFIGS.get(env, ENGINE_CONFIGS["development"])


def get_engine(url: Optional[str] = None, **overrides: Any) -> AsyncEngine:
    """Create and configure an async SQLAlchemy engine.

    Args:
        url: Database URL, defaults to the configured one
        **overrides: Engine options replacing the environment defaults.
            Passing ``poolclass=NullPool`` drops the pool sizing options.

    Returns:
        AsyncEngine: Configured SQLAlchemy async engine instance.
    """
    engine_url = url or str(settings.SQLALCHEMY_DATABASE_URI)
    engine_config = dict(get_engine_config())
    if overrides.get("poolclass") is NullPool:
        for key in ("pool_size", "max_overflow", "pool_timeout", "pool_recycle"):
            engine_config.pop(key, None)
    engine_config.update(overrides)

    logger.info(f"Creating database engine for {engine_url.split('@')[-1]}")
    return create_async_engine(engine_url, **engine_config)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Build a session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> async_sessionmaker:
    """Return the process-wide session factory, creating the engine on first use."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = get_engine()
        _session_factory = create_session_factory(_engine)
    return _session_factory


def configure_session_factory(factory: Optional[async_sessionmaker]) -> None:
    """Replace the process-wide session factory (``None`` resets it)."""
    global _session_factory
    _session_factory = factory


async def dispose_engine() -> None:
    """Close the pooled connections of the process-wide engine, if one was created."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
        _engine = None
        _session_factory = None


@asynccontextmanager
async def get_session(
    session_factory: Optional[async_sessionmaker] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get async session with proper error handling and cleanup.

    Yields:
        AsyncSession: SQLAlchemy async session
    """
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
    finally:
        await session.close()

