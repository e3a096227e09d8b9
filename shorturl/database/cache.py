"""Cache layer for URL shortener.

Values are JSON-compatible dictionaries. The in-process ``MemoryCache`` is
the default; ``RedisCache`` can be enabled to share entries between workers.
"""

import asyncio
import copy
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import redis.asyncio as redis
from cachetools import TLRUCache


DEFAULT_TTL_SECONDS = 300
DEFAULT_SWEEP_INTERVAL_SECONDS = 600
DEFAULT_MAX_ENTRIES = 10000


class CacheBase(ABC):
    """Common interface and key layout for cache backends."""

    enabled: bool = True

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Get value from cache, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """Set value in cache with an optional TTL override (seconds)."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        pass

    async def connect(self) -> None:
        """Prepare the backend."""

    async def close(self) -> None:
        """Release backend resources."""

    async def ping(self) -> bool:
        return True

    def get_cache_key(self, short_code: str) -> str:
        """Cache key for the mapping record of a short code."""
        return f"url:shortener:{short_code}"

    def get_stats_cache_key(self, short_code: str) -> str:
        """Cache key for the stats aggregate of a short code."""
        return f"url:shortener:stats:{short_code}"


class MemoryCache(CacheBase):
    """Process-local cache backed by a ``cachetools.TLRUCache``.

    Entries are stored as ``(ttl, value)`` so each ``set`` can carry its own
    lifetime. Expired entries are never served; the sweeper only reclaims
    memory between writes.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        sweep_interval_seconds: int = DEFAULT_SWEEP_INTERVAL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self.logger = logger or logging.getLogger(__name__)
        self._entries = TLRUCache(
            maxsize=max_entries,
            ttu=lambda key, entry, now: now + entry[0],
            timer=clock,
        )
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return copy.deepcopy(entry[1])

    async def set(self, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        if ttl is None:
            ttl = self.ttl_seconds
        if ttl <= 0:
            self._entries.pop(key, None)
            return True
        self._entries[key] = (ttl, copy.deepcopy(value))
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop expired entries.

        Returns:
            Number of entries removed
        """
        return len(self._entries.expire())

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            removed = self.purge_expired()
            if removed:
                self.logger.debug(f"Cache sweep removed {removed} expired entries")

    async def connect(self) -> None:
        """Start the background sweeper."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())
            self.logger.info(
                f"Memory cache enabled with TTL={self.ttl_seconds}s, "
                f"max {self._entries.maxsize} entries, "
                f"sweep every {self.sweep_interval_seconds}s"
            )

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self._entries.clear()


class RedisCache(CacheBase):
    """Redis cache for URL mappings."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        if not self.enabled or not self.client:
            return None

        try:
            raw = await self.client.get(key)
        except Exception as e:
            self.logger.error(f"Cache get error: {e}")
            return None
        return json.loads(raw) if raw else None

    async def set(self, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        if not self.enabled or not self.client:
            return False

        try:
            if ttl is None:
                ttl = self.ttl_seconds
            if ttl <= 0:
                # SETEX rejects non-positive expiry
                await self.client.delete(key)
                return True
            await self.client.setex(key, ttl, json.dumps(value))
            return True
        except Exception as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(key)
            return result > 0
        except Exception as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        if not self.enabled or not self.client:
            return False
        try:
            await self.client.ping()
            return True
        except Exception as e:
            self.logger.error(f"Cache ping error: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")
