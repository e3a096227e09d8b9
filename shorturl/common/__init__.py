"""Common utilities for URL shortener."""

from .validators import is_valid_url, is_valid_short_code
from .headers import (
    extract_forwarded_headers,
    get_client_ip,
    get_trusted_client_ip,
    get_user_agent,
    get_referrer,
    get_owner_id,
    get_device_type,
    is_bot_request,
)
from .url_builder import build_base_url, build_short_url
from .logging_config import setup_logging

__all__ = [
    "is_valid_url",
    "is_valid_short_code",
    "extract_forwarded_headers",
    "build_base_url",
    "get_client_ip",
    "get_trusted_client_ip",
    "get_user_agent",
    "get_referrer",
    "get_owner_id",
    "get_device_type",
    "is_bot_request",
    "build_short_url",
    "setup_logging",
]
