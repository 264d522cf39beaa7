"""Database module for the shortlink application."""
from shortlink.db.base import (
    configure_session_factory,
    create_session_factory,
    dispose_engine,
    get_engine,
    get_session,
    get_session_factory,
)
from shortlink.db.session import SessionManager, db_transaction, get_db

__all__ = [
    "get_engine",
    "create_session_factory",
    "get_session_factory",
    "configure_session_factory",
    "get_session",
    "dispose_engine",
    "get_db",
    "db_transaction",
    "SessionManager",
]
