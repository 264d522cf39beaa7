"""Repository layer for the shortlink application.

This module provides repository classes that abstract database operations
and implement the Repository pattern for clean separation of concerns.
"""

from shortlink.repositories.base import (
    BaseRepository,
    DuplicateEntityError,
    RepositoryError,
)
from shortlink.repositories.link_repository import IncrementUnavailableError, LinkRepository

__all__ = [
    # Base classes and exceptions
    "BaseRepository",
    "RepositoryError",
    "DuplicateEntityError",
    "IncrementUnavailableError",

    # Concrete repositories
    "LinkRepository",
]
