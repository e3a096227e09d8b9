"""Short link redirect routes served at the site root."""

from fastapi import APIRouter, Request, HTTPException, status
from fastapi.responses import RedirectResponse

from ..request_context import visit_from_request

router = APIRouter()


@router.get("/health", include_in_schema=False)
async def health_check_web(request: Request):
    """Health check endpoint (simple version for load balancers)."""
    service = request.app.state.service

    health = await service.health_check()

    if health["overall"]:
        return {"status": "healthy"}
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Service unhealthy",
    )


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(request: Request, short_code: str):
    """Redirect to the original URL."""
    service = request.app.state.service

    # Raises NotFoundError, rendered as 404 by the app's error handler
    mapping = await service.resolve(short_code, visit_from_request(request, service))

    # Temporary redirect so every visit reaches the service
    return RedirectResponse(url=mapping.original_url, status_code=status.HTTP_302_FOUND)
