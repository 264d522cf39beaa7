"""Alembic migration utilities.

Schema changes go through the revisions under ``alembic/versions``;
these helpers apply them and report the current state.
"""

import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine

from shortlink.core.config import settings

logger = logging.getLogger(__name__)

# Project paths
ALEMBIC_DIR = Path(__file__).resolve().parent.parent.parent / "alembic"
ALEMBIC_INI = Path(__file__).resolve().parent.parent.parent / "alembic.ini"


def get_alembic_config() -> Config:
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations(revision: str = "head", offline: bool = False) -> None:
    """Apply pending migrations up to ``revision``.

    Args:
        revision: Target revision, all of them by default
        offline: If True, emit the SQL instead of executing it
    """
    try:
        command.upgrade(get_alembic_config(), revision, sql=offline)
        logger.info(f"Applied Alembic migrations up to {revision}")
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}")
        raise


def downgrade(target: str = "-1") -> None:
    """Downgrade the database schema to a previous version.

    WARNING: Dropping the links table deletes every stored link.
    """
    try:
        command.downgrade(get_alembic_config(), target)
        logger.info(f"Successfully downgraded to {target}")
    except Exception as e:
        logger.error(f"Failed to downgrade: {e}")
        raise


def get_current_revision() -> Optional[str]:
    """Get the current Alembic revision of the database.

    Returns:
        str: Current revision identifier or None if it cannot be determined
    """
    try:
        engine = create_engine(settings.SYNC_DATABASE_URI)
        with engine.connect() as conn:
            context = MigrationContext.configure(conn)
            current_rev = context.get_current_revision()
        engine.dispose()
        return current_rev
    except Exception as e:
        logger.error(f"Failed to get current revision: {e}")

    return None
