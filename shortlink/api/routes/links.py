"""Link creation and lookup endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.api import schemas
from shortlink.api.dependencies import (
    get_allocator,
    get_base_url,
    get_dashboard_service,
    get_resolver,
)
from shortlink.db.session import get_db
from shortlink.models.link import Link
from shortlink.services.allocator import CodeAllocator
from shortlink.services.dashboard import DashboardService
from shortlink.services.exceptions import (
    AllocationConflictError,
    InvalidCodeFormatError,
    LinkNotFoundError,
    LinkValidationError,
    PersistenceError,
)
from shortlink.services.resolver import LinkResolver

router = APIRouter(tags=["links"])


def to_link_response(link: Link, base_url: str) -> schemas.LinkResponse:
    return schemas.LinkResponse(
        id=link.id,
        owner_id=link.owner_id,
        short_code=link.short_code,
        short_url=f"{base_url}/{link.short_code}",
        original_url=link.original_url,
        click_count=link.click_count,
        created_at=link.created_at,
    )


@router.post(
    "/links",
    response_model=schemas.LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Invalid URL or owner"},
        409: {"model": schemas.ErrorResponse, "description": "Short code taken concurrently, retry"},
        500: {"model": schemas.ErrorResponse, "description": "Store failure"},
    }
)
async def create_link(
    payload: schemas.LinkCreateRequest,
    db: AsyncSession = Depends(get_db),
    allocator: CodeAllocator = Depends(get_allocator),
    base_url: str = Depends(get_base_url)
):
    try:
        link = await allocator.create_link(db, payload.url, payload.owner_id)
    except LinkValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AllocationConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return to_link_response(link, base_url)


@router.get(
    "/links/{short_code}",
    response_model=schemas.LinkResponse,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Malformed short code"},
        404: {"model": schemas.ErrorResponse, "description": "Link not found"},
    }
)
async def get_link(
    short_code: str = Path(..., description="The short code of the link"),
    db: AsyncSession = Depends(get_db),
    resolver: LinkResolver = Depends(get_resolver),
    base_url: str = Depends(get_base_url)
):
    """Look up a link without counting a visit."""
    try:
        link = await resolver.resolve(db, short_code)
    except InvalidCodeFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LinkNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return to_link_response(link, base_url)


@router.get(
    "/users/{owner_id}/dashboard",
    response_model=schemas.DashboardResponse,
)
async def get_dashboard(
    owner_id: str = Path(..., description="Owner whose links are listed"),
    db: AsyncSession = Depends(get_db),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
    base_url: str = Depends(get_base_url)
):
    try:
        data = await dashboard_service.get_dashboard_data(db, owner_id)
    except LinkValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return schemas.DashboardResponse(
        stats=schemas.DashboardStats(**data["stats"]),
        links=[to_link_response(link, base_url) for link in data["links"]],
    )
