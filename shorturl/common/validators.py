"""Input validation for destination URLs and caller-chosen short codes.

Both validators return ``(ok, reason)`` so callers can surface the reason
in a 400 response without catching anything.
"""

import re
from typing import Tuple
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = ("http", "https")

SHORT_CODE_CHARS = re.compile(r"[A-Za-z0-9_-]+")

# Paths served by the app itself; a short code must not shadow them
RESERVED_WORDS = frozenset({
    "api", "health", "admin", "static", "assets", "favicon",
    "robots", "sitemap", "create", "delete", "list", "stats", "shorturl",
})


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Accept absolute http(s) URLs with a host.

    Args:
        url: Candidate destination URL

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(url, str) or not url:
        return False, "URL is required"
    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"
    if any(c.isspace() for c in url):
        return False, "URL must not contain whitespace"

    parsed = urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False, "URL must use http or https protocol"
    if not parsed.hostname:
        return False, "URL must have a valid domain"
    try:
        parsed.port
    except ValueError as e:
        return False, f"Invalid port: {e}"

    return True, ""


def is_valid_short_code(short_code: str, min_length: int = 3, max_length: int = 20) -> Tuple[bool, str]:
    """Check a caller-chosen short code against length, charset and reserved words."""
    if not isinstance(short_code, str) or not short_code:
        return False, "Short code is required"
    if not min_length <= len(short_code) <= max_length:
        return False, f"Short code must be {min_length}-{max_length} characters long"
    if not SHORT_CODE_CHARS.fullmatch(short_code):
        return False, "Short code can only contain letters, numbers, hyphens, and underscores"
    if short_code.lower() in RESERVED_WORDS:
        return False, f"'{short_code}' is a reserved word and cannot be used"
    return True, ""
