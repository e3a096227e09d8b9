"""Helpers turning a Starlette request into service inputs.

``ForwardedHeadersMiddleware`` normally fills ``request.state``; the
fallbacks cover apps assembled without it.
"""

from typing import Optional

from fastapi import Request

from ..common.headers import get_client_ip, get_owner_id, get_referrer, get_user_agent
from ..common.url_builder import build_base_url, build_short_url
from ..database.models import Visit


def client_ip_for(request: Request) -> str:
    client_ip = getattr(request.state, "client_ip", None)
    if client_ip:
        return client_ip
    return get_client_ip(dict(request.headers), request.client.host if request.client else None)


def visit_from_request(request: Request, service) -> Visit:
    headers = dict(request.headers)
    return Visit(
        timestamp=service.clock(),
        ip=client_ip_for(request),
        user_agent=get_user_agent(headers),
        referrer=get_referrer(headers),
    )


def owner_from_request(request: Request) -> Optional[str]:
    config = request.app.state.config
    return get_owner_id(dict(request.headers), config.owner_header)


def short_url_for(request: Request, short_code: str) -> str:
    """Public short URL for ``short_code`` as seen by this request's client."""
    config = request.app.state.config
    base_url = getattr(request.state, "base_url", None) or build_base_url(
        headers=dict(request.headers),
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    return build_short_url(short_code=short_code, base_url=base_url, path_prefix=config.path_prefix)
