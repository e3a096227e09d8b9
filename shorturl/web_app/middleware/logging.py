"""Access logging middleware."""

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

SLOW_REQUEST_MS = 1000.0


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request; slow requests are logged at WARNING."""

    def __init__(self, app, logger: Optional[logging.Logger] = None, slow_request_ms: float = SLOW_REQUEST_MS):
        super().__init__(app)
        self.logger = logger or logging.getLogger("shorturl.web")
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client_ip = getattr(request.state, "client_ip", None) or "unknown"
        level = logging.WARNING if elapsed_ms >= self.slow_request_ms else logging.INFO
        self.logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} "
            f"{elapsed_ms:.1f}ms client={client_ip}",
        )
        return response
