"""API routes implementation."""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from datetime import datetime, timezone
from typing import Optional

from .schemas import (
    ShortenRequest,
    ShortURLResponse,
    ShortURLListResponse,
    URLStatsResponse,
    HealthResponse,
    ErrorResponse,
    StatisticsResponse,
)
from ..rate_limit import enforce_rate_limit
from ..request_context import owner_from_request, short_url_for, visit_from_request
from ...database.models import URLMapping

router = APIRouter()


def _mapping_response(request: Request, mapping: URLMapping) -> ShortURLResponse:
    return ShortURLResponse(
        short_code=mapping.short_code,
        short_url=short_url_for(request, mapping.short_code),
        original_url=mapping.original_url,
        owner_id=mapping.owner_id,
        clicks=mapping.clicks,
        created_at=mapping.created_at,
        last_accessed=mapping.last_accessed,
        expires_at=mapping.expires_at,
        is_active=mapping.is_active,
        title=mapping.metadata.title,
        description=mapping.metadata.description,
        tags=mapping.metadata.tags,
    )


@router.post(
    "/shorturl",
    status_code=status.HTTP_201_CREATED,
    response_model=ShortURLResponse,
    responses={
        200: {"model": ShortURLResponse, "description": "Existing mapping for this owner"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        429: {"model": ErrorResponse, "description": "Rate limited"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom short code and expiry.",
    dependencies=[Depends(enforce_rate_limit)],
)
async def create_short_url(request: Request, response: Response, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service

    mapping, created = await service.create_short_url(
        original_url=body.original_url,
        owner_id=owner_from_request(request),
        custom_code=body.custom_code or None,
        expires_in_days=body.expires_in,
        title=body.title,
        description=body.description,
        tags=body.tags,
    )

    if not created:
        response.status_code = status.HTTP_200_OK

    return _mapping_response(request, mapping)


@router.get(
    "/shorturl",
    response_model=ShortURLListResponse,
    summary="List short URLs",
    description="List the caller's short URLs (anonymous ones without an identity), newest first.",
)
async def list_short_urls(
    request: Request,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
):
    """List short URLs."""
    service = request.app.state.service
    config = request.app.state.config

    limit = min(limit or config.default_page_size, config.max_page_size)
    mappings = await service.list_urls(
        owner_id=owner_from_request(request),
        limit=limit,
        offset=offset,
    )

    return ShortURLListResponse(
        count=len(mappings),
        limit=limit,
        offset=offset,
        urls=[_mapping_response(request, m) for m in mappings],
    )


@router.get(
    "/shorturl/{short_code}",
    status_code=status.HTTP_302_FOUND,
    responses={
        302: {"description": "Redirect to the original URL"},
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Follow short URL",
)
async def redirect_short_url(request: Request, short_code: str):
    """Redirect to the original URL and count the visit."""
    service = request.app.state.service

    mapping = await service.resolve(short_code, visit_from_request(request, service))

    return RedirectResponse(url=mapping.original_url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/shorturl/{short_code}/stats",
    response_model=URLStatsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get URL statistics",
    description="Click totals plus breakdowns by referrer, user agent and device.",
)
async def get_url_stats(request: Request, short_code: str):
    """Get click analytics for a short URL."""
    service = request.app.state.service

    stats = await service.get_url_stats(short_code)
    mapping = stats["mapping"]

    return URLStatsResponse(
        short_code=mapping["short_code"],
        short_url=short_url_for(request, mapping["short_code"]),
        original_url=mapping["original_url"],
        created_at=mapping["created_at"],
        last_accessed=mapping["last_accessed"],
        expires_at=mapping["expires_at"],
        title=mapping["title"],
        total_clicks=stats["total_clicks"],
        last_day_clicks=stats["last_day_clicks"],
        last_week_clicks=stats["last_week_clicks"],
        by_referrer=stats["by_referrer"],
        by_user_agent=stats["by_user_agent"],
        by_device=stats["by_device"],
        generated_at=stats["generated_at"],
    )


@router.delete(
    "/shorturl/{short_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        401: {"model": ErrorResponse, "description": "Identity required"},
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Delete short URL",
)
async def delete_short_url(request: Request, short_code: str):
    """Soft-delete a short URL."""
    service = request.app.state.service

    await service.delete_short_url(short_code, owner_id=owner_from_request(request))

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get service-wide statistics.",
)
async def get_statistics(request: Request):
    """Get service statistics."""
    service = request.app.state.service

    stats = await service.get_statistics()

    return StatisticsResponse(**stats)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
