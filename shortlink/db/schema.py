"""Schema bootstrap and verification.

``init_db`` is meant for development databases and tests; deployed
databases are managed through the Alembic migrations.
"""

import logging
from typing import Dict

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from shortlink.core.config import settings
from shortlink.models.link import Link

logger = logging.getLogger(__name__)

INCREMENT_CLICK_COUNT_SQL = f"""
CREATE OR REPLACE FUNCTION {settings.CLICK_COUNT_FUNCTION}(code text)
RETURNS integer
LANGUAGE sql
AS $$
    UPDATE links
    SET click_count = click_count + 1
    WHERE short_code = code
    RETURNING click_count;
$$;
"""

DROP_INCREMENT_CLICK_COUNT_SQL = f"DROP FUNCTION IF EXISTS {settings.CLICK_COUNT_FUNCTION}(text);"

FUNCTION_EXISTS_SQL = "SELECT EXISTS (SELECT 1 FROM pg_proc WHERE proname = :name)"


async def init_db(engine: AsyncEngine) -> None:
    """Create the links table and, on PostgreSQL, the click counter function."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        if conn.dialect.name == "postgresql":
            await conn.execute(text(INCREMENT_CLICK_COUNT_SQL))
    logger.info(f"Database schema initialized on {engine.dialect.name}")


async def verify_schema(engine: AsyncEngine) -> Dict[str, bool]:
    """
    Report which parts of the schema are present.

    Returns:
        Dict with ``links_table`` and ``increment_function`` flags. The
        function is only looked up on PostgreSQL and reported missing elsewhere.
    """
    async with engine.connect() as conn:
        has_table = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table(Link.__tablename__)
        )
        has_function = False
        if conn.dialect.name == "postgresql":
            result = await conn.execute(
                text(FUNCTION_EXISTS_SQL), {"name": settings.CLICK_COUNT_FUNCTION}
            )
            has_function = bool(result.scalar())

    report = {"links_table": has_table, "increment_function": has_function}
    if not has_function:
        logger.warning(
            f"Function '{settings.CLICK_COUNT_FUNCTION}' missing, visits will use read-then-write counting"
        )
    return report
