"""Forwarded headers middleware."""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ...common.headers import get_client_ip
from ...common.url_builder import build_base_url


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Resolve proxy headers once per request.

    Sets ``request.state.client_ip`` (first X-Forwarded-For hop, else the
    peer) and ``request.state.base_url`` (the origin short links should use).
    """

    async def dispatch(self, request: Request, call_next: Callable):
        headers = dict(request.headers)
        config = request.app.state.config

        request.state.client_ip = get_client_ip(
            headers,
            request.client.host if request.client else None,
        )
        request.state.base_url = build_base_url(
            headers=headers,
            fallback_base_url=config.base_url,
            request_scheme=request.url.scheme,
            request_host=headers.get("host"),
        )

        return await call_next(request)
