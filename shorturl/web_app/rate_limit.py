"""Sliding window rate limiting for the create endpoint."""

import time
import threading
from typing import Callable, List

from cachetools import TTLCache
from fastapi import Request

from ..common.headers import get_trusted_client_ip
from ..errors import RateLimitedError

DEFAULT_MAX_CLIENTS = 100000


class SlidingWindowRateLimiter:
    """Sliding window rate limiter.

    Tracks request timestamps per client within a rolling window. A client's
    history is dropped once it has been idle for a whole window, and at most
    ``max_clients`` histories are held.

    Args:
        limit: Maximum number of requests per window
        window: Time window in seconds
        max_clients: Upper bound on tracked clients
    """

    def __init__(
        self,
        limit: int,
        window: int,
        max_clients: int = DEFAULT_MAX_CLIENTS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self.clock = clock
        # Every touch rewrites the entry, so it outlives its newest timestamp by one window
        self.requests: TTLCache = TTLCache(maxsize=max_clients, ttl=window, timer=clock)
        self.lock = threading.Lock()

    def allow_request(self, client_id: str) -> bool:
        """Record a request and report whether it is within the limit."""
        with self.lock:
            now = self.clock()
            cutoff = now - self.window
            recent: List[float] = [ts for ts in self.requests.get(client_id, []) if ts > cutoff]

            allowed = len(recent) < self.limit
            if allowed:
                recent.append(now)
            self.requests[client_id] = recent
            return allowed

    def tracked_clients(self) -> int:
        with self.lock:
            self.requests.expire()
            return len(self.requests)


def rate_limit_key(request: Request) -> str:
    """Client identity for limiting; only trusted proxy hops are believed."""
    config = request.app.state.config
    return get_trusted_client_ip(
        dict(request.headers),
        request.client.host if request.client else None,
        config.trusted_proxy_hops,
    )


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency rejecting clients over the configured limit."""
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    if not limiter.allow_request(rate_limit_key(request)):
        raise RateLimitedError(
            f"Too many requests, limit is {limiter.limit} per {limiter.window}s"
        )
