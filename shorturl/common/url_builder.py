"""Public short URL construction."""

from typing import Dict, Optional

from .headers import extract_forwarded_headers


def build_base_url(
    headers: Dict[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Origin that clients used to reach the service.

    Proxy-supplied ``X-Forwarded-Proto`` and ``X-Forwarded-Host`` win, then
    the request's own scheme and Host, then the configured base URL.
    """
    forwarded = extract_forwarded_headers(headers)
    candidates = (
        (forwarded["forwarded_proto"], forwarded["forwarded_host"]),
        (request_scheme, request_host),
    )
    for scheme, host in candidates:
        if scheme and host:
            # Forwarded headers may carry a comma-separated chain; the client-facing hop is first
            return f"{scheme.split(',')[0].strip()}://{host.split(',')[0].strip()}"
    return fallback_base_url.rstrip("/")


def build_short_url(short_code: str, base_url: str, path_prefix: str = "") -> str:
    """Join base URL, optional prefix (``/s``) and code into the public link."""
    parts = [base_url.rstrip("/"), path_prefix.strip("/"), short_code]
    return "/".join(part for part in parts if part)
