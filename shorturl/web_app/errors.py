"""Exception handlers mapping service errors to JSON responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api.schemas import ErrorResponse
from ..errors import ShortURLError

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"

logger = logging.getLogger("shorturl.web")


def _error_response(status_code: int, error: str, code: str, detail=None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_shorturl_error(request: Request, exc: ShortURLError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return _error_response(exc.status_code, GENERIC_ERROR_MESSAGE, exc.code)
    return _error_response(exc.status_code, exc.message, exc.code, exc.detail)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        "VALIDATION_ERROR",
        problems,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        GENERIC_ERROR_MESSAGE,
        "INTERNAL",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShortURLError, handle_shorturl_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
