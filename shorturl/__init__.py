"""Core business logic for URL shortener."""

from .shortcode import ShortCodeGenerator
from .service import URLShortenerService

__all__ = ["ShortCodeGenerator", "URLShortenerService"]

__version__ = "1.0.0"
