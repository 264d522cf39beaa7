"""Edge redirect app.

A bare Starlette application serving ``/{short_code}`` and
``/redirect/{short_code}`` with permissive CORS headers on every response.
Run with ``uvicorn shortlink.handlers.edge:app``.
"""

from typing import Dict

from loguru import logger
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from shortlink.core.config import settings
from shortlink.db.base import get_session
from shortlink.repositories.link_repository import LinkRepository
from shortlink.services.redirect import RedirectService
from shortlink.services.resolver import LinkResolver, record_visit_in_background


def cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": settings.EDGE_CORS_ALLOW_HEADERS,
    }


async def redirect(request: Request) -> Response:
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=cors_headers())

    short_code = request.path_params.get("short_code")
    service = RedirectService(LinkResolver(LinkRepository()))

    async with get_session() as db:
        outcome = await service.prepare(db, short_code)

    if outcome.visit_code is None:
        logger.info(f"Edge redirect refused with {outcome.status_code}", short_code=short_code)
        return JSONResponse(outcome.body, status_code=outcome.status_code, headers=cors_headers())

    return Response(
        status_code=outcome.status_code,
        headers={**outcome.headers, **cors_headers()},
        background=BackgroundTask(record_visit_in_background, service.resolver, outcome.visit_code),
    )


routes = [
    Route("/", redirect, methods=["GET", "OPTIONS"]),
    Route("/redirect/{short_code}", redirect, methods=["GET", "OPTIONS"]),
    Route("/{short_code}", redirect, methods=["GET", "OPTIONS"]),
]

app = Starlette(routes=routes)
