"""Serverless function entrypoint for short link redirects.

Deployed behind an API Gateway or Netlify style router. Each invocation
runs its own event loop, so the engine uses ``NullPool`` and no connection
outlives the loop that opened it.
"""

import asyncio
import json
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial, wraps
from typing import Any, Callable, Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import NullPool

from shortlink.core.logging import setup_logging
from shortlink.db.base import create_session_factory, get_engine, get_session
from shortlink.db.session import SessionManager
from shortlink.repositories.link_repository import LinkRepository
from shortlink.services.exceptions import InternalError
from shortlink.services.redirect import INTERNAL_ERROR_MESSAGE, RedirectOutcome, RedirectService
from shortlink.services.resolver import LinkResolver, record_visit_in_background

setup_logging()

# Visits are recorded here after the response has been returned
visit_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="visit")

_session_factory: Optional[async_sessionmaker] = None


def get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine(poolclass=NullPool))
    return _session_factory


def build_resolver() -> LinkResolver:
    return LinkResolver(
        LinkRepository(),
        session_scope=partial(SessionManager.transaction_context, get_session_factory()),
    )


def json_response(status_code: int, body: Dict[str, Any]) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def to_response(outcome: RedirectOutcome) -> dict:
    if outcome.body is not None:
        return json_response(outcome.status_code, outcome.body)
    return {
        "statusCode": outcome.status_code,
        "headers": dict(outcome.headers),
        "body": "",
    }


def guarantee_500_response(func: Callable[..., dict]) -> Callable[..., dict]:
    """Turn any exception escaping ``func`` into a 500 response."""
    @wraps(func)
    def wrapper(*args, **kwargs) -> dict:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            error = InternalError(f"Unhandled error in {func.__name__}: {e}", cause=e)
            logger.opt(exception=e).error(str(error))
            return json_response(500, {"error": INTERNAL_ERROR_MESSAGE})
    return wrapper


def extract_short_code(event: Optional[dict]) -> Optional[str]:
    """Read the short code from path parameters, else the last path segment."""
    event = event or {}
    params = event.get("pathParameters") or {}
    short_code = params.get("shortCode") or params.get("shortcode")
    if short_code:
        return short_code

    segments = [part for part in (event.get("path") or "").split("/") if part]
    return segments[-1] if segments else None


def _log_visit_failure(future: Future) -> None:
    error = future.exception()
    if error is not None:
        logger.error(f"Visit recording task crashed: {error}")


def schedule_visit(short_code: str) -> Future:
    """Record the visit on the worker pool without waiting for it."""
    resolver = build_resolver()
    future = visit_executor.submit(
        asyncio.run, record_visit_in_background(resolver, short_code)
    )
    future.add_done_callback(_log_visit_failure)
    return future


async def _prepare(short_code: Optional[str]) -> RedirectOutcome:
    service = RedirectService(build_resolver())
    async with get_session(get_session_factory()) as db:
        return await service.prepare(db, short_code)


@guarantee_500_response
def handler(event: dict, context: Any) -> dict:
    """Handle a redirect request.

    HTTP responses:
        301: redirect, with ``Location`` and ``Cache-Control`` headers
        400: missing or malformed short code
        404: no link stored under the code
        500: anything else

    Example:
        >>> handler({"pathParameters": {"shortCode": "abc123"}}, None)["statusCode"]
        301
    """
    short_code = extract_short_code(event)
    outcome = asyncio.run(_prepare(short_code))

    if outcome.visit_code is not None:
        schedule_visit(outcome.visit_code)
    else:
        logger.info(f"Redirect refused with {outcome.status_code}", short_code=short_code)

    return to_response(outcome)
