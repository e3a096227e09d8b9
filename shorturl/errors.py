"""Error taxonomy for the URL shortener.

Client-facing errors carry an HTTP status code and a stable error code so the
web layer can render them without inspecting message text.
"""

from typing import Optional


class ShortURLError(Exception):
    """Base class for URL shortener errors."""

    status_code: int = 500
    code: str = "INTERNAL"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidURLError(ShortURLError):
    """The URL is malformed or uses an unsupported scheme."""

    status_code = 400
    code = "INVALID_URL"


class InvalidRequestError(ShortURLError):
    """A request field failed validation."""

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidShortCodeError(ShortURLError):
    """A custom short code failed validation."""

    status_code = 400
    code = "INVALID_SHORT_CODE"


class CodeConflictError(ShortURLError):
    """The custom or generated short code is already assigned."""

    status_code = 409
    code = "CODE_CONFLICT"


class NotFoundError(ShortURLError):
    """No resolvable mapping exists for the requested code."""

    status_code = 404
    code = "NOT_FOUND"


class UnauthorizedError(ShortURLError):
    """An owner-scoped operation was attempted without an identity."""

    status_code = 401
    code = "UNAUTHORIZED"


class RateLimitedError(ShortURLError):
    """The client exceeded the request rate limit."""

    status_code = 429
    code = "RATE_LIMITED"


class InternalError(ShortURLError):
    """Unexpected store or cache failure."""

    status_code = 500
    code = "INTERNAL"
