"""Short link redirect endpoint with click counting."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from shortlink.api.dependencies import get_redirect_service
from shortlink.db.session import get_db
from shortlink.services.redirect import RedirectService
from shortlink.services.resolver import record_visit_in_background

router = APIRouter(tags=["redirect"])


@router.get("/{short_code}", status_code=301, response_class=Response)
async def redirect_to_original_url(
    request: Request,
    short_code: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    redirect_service: RedirectService = Depends(get_redirect_service),
):
    """Redirect to the original URL and count the visit after the response is sent."""
    outcome = await redirect_service.prepare(db, short_code)

    if outcome.visit_code is None:
        logger.info(
            f"Redirect refused with {outcome.status_code}",
            short_code=short_code,
            client=request.client.host if request.client else None,
        )
        return JSONResponse(status_code=outcome.status_code, content=outcome.body)

    # Runs after the response has been sent, in its own session
    background_tasks.add_task(
        record_visit_in_background,
        redirect_service.resolver,
        outcome.visit_code,
    )
    return Response(status_code=outcome.status_code, headers=outcome.headers)
