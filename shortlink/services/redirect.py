"""Redirect orchestration shared by every redirect entrypoint.

Each adapter (app server route, serverless function, edge app) calls
``RedirectService.prepare`` and renders the outcome in its own response
type. When ``outcome.visit_code`` is set the adapter schedules
``record_visit`` without waiting for it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.core.config import settings
from shortlink.services.exceptions import (
    InternalError,
    InvalidCodeFormatError,
    LinkNotFoundError,
    PersistenceError,
)
from shortlink.services.resolver import LinkResolver

logger = logging.getLogger(__name__)

INVALID_CODE_MESSAGE = "Invalid short code format"
NOT_FOUND_MESSAGE = "Link not found"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def redirect_cache_control() -> str:
    return f"public, max-age={settings.REDIRECT_CACHE_MAX_AGE}"


@dataclass
class RedirectOutcome:
    """What a redirect entrypoint has to send back."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    visit_code: Optional[str] = None
    cause: Optional[Exception] = None

    @property
    def body(self) -> Optional[Dict[str, Any]]:
        """JSON error payload, or None for the empty redirect body."""
        if self.error is None:
            return None
        return {"error": self.error}

    @classmethod
    def failure(
        cls, status_code: int, message: str, cause: Optional[Exception] = None
    ) -> "RedirectOutcome":
        return cls(status_code=status_code, error=message, cause=cause)

    @classmethod
    def redirect(cls, location: str, short_code: str) -> "RedirectOutcome":
        return cls(
            status_code=301,
            headers={
                "Location": location,
                "Cache-Control": redirect_cache_control(),
            },
            visit_code=short_code,
        )


class RedirectService:
    """Turns a raw short code into a redirect outcome."""

    def __init__(self, resolver: LinkResolver):
        self.resolver = resolver

    async def prepare(self, db: AsyncSession, raw_code: Optional[str]) -> RedirectOutcome:
        """
        Resolve ``raw_code`` and describe the response.

        Never raises. A failed resolution never asks for a visit record.
        """
        if not raw_code:
            return RedirectOutcome.failure(400, "Invalid short code")

        try:
            link = await self.resolver.resolve(db, raw_code)
        except InvalidCodeFormatError:
            return RedirectOutcome.failure(400, INVALID_CODE_MESSAGE)
        except LinkNotFoundError:
            return RedirectOutcome.failure(404, NOT_FOUND_MESSAGE)
        except PersistenceError as e:
            logger.error(f"Store failure resolving {raw_code!r}: {e}")
            return RedirectOutcome.failure(500, INTERNAL_ERROR_MESSAGE, cause=e)
        except Exception as e:
            error = InternalError(f"Redirect failed for {raw_code!r}: {e}", cause=e)
            logger.exception(str(error))
            return RedirectOutcome.failure(500, INTERNAL_ERROR_MESSAGE, cause=error)

        return RedirectOutcome.redirect(link.original_url, link.short_code)
