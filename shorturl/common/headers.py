"""Header parsing utilities for URL shortener."""

import re
from typing import Dict, Optional

DEFAULT_CLIENT_IP = "0.0.0.0"
UNKNOWN_USER_AGENT = "unknown"

BOT_MARKERS = (
    "googlebot", "bingbot", "slurp", "duckduckbot", "baiduspider",
    "yandexbot", "sogou", "exabot", "facebot", "ia_archiver",
    "ahrefs", "semrush", "mj12bot", "dotbot", "rogerbot", "seznambot",
    "ccbot", "gigabot", "sitecheck", "nutch", "spider", "crawler",
    "monitor", "archive", "tracker", "scraper", "checker",
)

TABLET_PATTERN = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobile))", re.IGNORECASE)
MOBILE_PATTERN = re.compile(r"mobile|android|iphone|ipod|blackberry|iemobile|opera mini", re.IGNORECASE)


def _lower_keys(headers: Dict[str, str]) -> Dict[str, str]:
    return {k.lower(): v for k, v in headers.items()}


def extract_forwarded_headers(headers: Dict[str, str]) -> Dict[str, Optional[str]]:
    """Extract X-Forwarded-* headers from request.

    Args:
        headers: Request headers dictionary

    Returns:
        Dictionary with forwarded_proto, forwarded_host, forwarded_for
    """
    headers_lower = _lower_keys(headers)

    return {
        "forwarded_proto": headers_lower.get("x-forwarded-proto"),
        "forwarded_host": headers_lower.get("x-forwarded-host"),
        "forwarded_for": headers_lower.get("x-forwarded-for"),
    }


def get_client_ip(headers: Dict[str, str], peer_host: Optional[str] = None) -> str:
    """Client IP as reported: first X-Forwarded-For hop, then the socket peer.

    Callers can set the header freely, so this is for analytics and logs only.
    """
    forwarded_for = extract_forwarded_headers(headers)["forwarded_for"]
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer_host or DEFAULT_CLIENT_IP


def get_trusted_client_ip(
    headers: Dict[str, str],
    peer_host: Optional[str],
    trusted_hops: int = 0,
) -> str:
    """Client IP that a caller cannot forge.

    With no trusted proxies this is the socket peer. Behind ``trusted_hops``
    proxies, each of which appends to X-Forwarded-For, the client is the entry
    that many places from the right; anything further left is caller-supplied.
    """
    if trusted_hops > 0:
        forwarded_for = extract_forwarded_headers(headers)["forwarded_for"] or ""
        hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
        if len(hops) >= trusted_hops:
            return hops[-trusted_hops]
    return peer_host or DEFAULT_CLIENT_IP


def get_user_agent(headers: Dict[str, str]) -> str:
    return _lower_keys(headers).get("user-agent") or UNKNOWN_USER_AGENT


def get_referrer(headers: Dict[str, str]) -> Optional[str]:
    headers_lower = _lower_keys(headers)
    return headers_lower.get("referer") or headers_lower.get("origin") or None


def get_owner_id(headers: Dict[str, str], header_name: str) -> Optional[str]:
    """Owner identity asserted by the upstream auth proxy, if any."""
    value = _lower_keys(headers).get(header_name.lower())
    if value and value.strip():
        return value.strip()
    return None


def is_bot_request(user_agent: Optional[str]) -> bool:
    """Check if the user agent looks like a bot or crawler."""
    if not user_agent:
        return False
    ua = user_agent.lower()
    return any(marker in ua for marker in BOT_MARKERS)


def get_device_type(user_agent: Optional[str]) -> str:
    """Classify a user agent as bot, tablet, mobile, desktop or unknown."""
    if not user_agent or user_agent == UNKNOWN_USER_AGENT:
        return "unknown"
    if is_bot_request(user_agent):
        return "bot"
    if TABLET_PATTERN.search(user_agent):
        return "tablet"
    if MOBILE_PATTERN.search(user_agent):
        return "mobile"
    return "desktop"
