"""Business logic service for URL shortener."""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple
from datetime import datetime, timedelta, timezone

from .shortcode import ShortCodeGenerator
from .stats import build_url_stats
from .title_fetcher import TitleFetcher
from .database.base import URLShortenerDBBase, DuplicateKeyError
from .database.cache import CacheBase
from .database.models import URLMapping, URLMetadata, Visit
from .common.validators import is_valid_url, is_valid_short_code
from .errors import (
    CodeConflictError,
    InternalError,
    InvalidRequestError,
    InvalidShortCodeError,
    InvalidURLError,
    NotFoundError,
    ShortURLError,
    UnauthorizedError,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def store_errors(operation: str):
    """Re-raise unexpected store or cache failures as ``InternalError``.

    Domain errors pass through unchanged.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except ShortURLError:
                raise
            except Exception as e:
                self.logger.error(f"Store failure during {operation}: {e}", exc_info=e)
                raise InternalError(f"{operation} failed") from e
        return wrapper
    return decorator


class URLShortenerService:
    """Service layer for URL shortening business logic.

    Redirects served from the cache count the visit in a detached task, so
    click counts read back may trail the store by the visits still in flight.
    Failures in detached tasks are logged and dropped.
    """

    def __init__(
        self,
        db: URLShortenerDBBase,
        cache: Optional[CacheBase] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        title_fetcher: Optional[TitleFetcher] = None,
        logger: Optional[logging.Logger] = None,
        enable_custom_codes: bool = True,
        max_collision_retries: int = 5,
        cache_ttl_seconds: int = 300,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize URL shortener service.

        Args:
            db: Database instance
            cache: Optional cache instance
            short_code_generator: Optional short code generator
            title_fetcher: Optional fetcher used to backfill page titles
            logger: Optional logger
            enable_custom_codes: Whether to allow custom short codes
            max_collision_retries: Maximum inserts attempted for a generated code
            cache_ttl_seconds: TTL for mapping and stats cache entries
            clock: Returns the current UTC time
        """
        self.db = db
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.title_fetcher = title_fetcher
        self.logger = logger or logging.getLogger(__name__)
        self.enable_custom_codes = enable_custom_codes
        self.max_collision_retries = max_collision_retries
        self.cache_ttl_seconds = cache_ttl_seconds
        self.clock = clock
        self._background_tasks: Set[asyncio.Task] = set()

    @store_errors("create")
    async def create_short_url(
        self,
        original_url: str,
        owner_id: Optional[str] = None,
        custom_code: Optional[str] = None,
        expires_in_days: Optional[int] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Tuple[URLMapping, bool]:
        """Create a new short URL, or return the owner's existing one.

        Args:
            original_url: The original long URL
            owner_id: Owning principal, None for anonymous mappings
            custom_code: Optional custom short code
            expires_in_days: Optional lifetime in days
            title: Optional title; fetched from the page when omitted
            description: Optional description
            tags: Optional free-form tags

        Returns:
            Tuple of (mapping, created). ``created`` is False when an
            existing resolvable mapping for the same owner was returned.

        Raises:
            InvalidURLError: If the URL is not an absolute http(s) URL
            InvalidShortCodeError: If the custom code is malformed
            CodeConflictError: If the short code is already assigned
        """
        is_valid, error = is_valid_url(original_url)
        if not is_valid:
            raise InvalidURLError(f"Invalid URL: {error}")

        now = self.clock()

        if owner_id is not None:
            existing = await self.db.find_resolvable_by_url(original_url, owner_id, now)
            if existing is not None:
                self.logger.debug(f"Returning existing mapping {existing.short_code} for owner {owner_id}")
                return existing, False

        if custom_code:
            if not self.enable_custom_codes:
                raise InvalidShortCodeError("Custom short codes are not enabled")

            is_valid, error = is_valid_short_code(custom_code)
            if not is_valid:
                raise InvalidShortCodeError(f"Invalid short code: {error}")

            if await self.db.short_code_exists(custom_code):
                raise CodeConflictError(f"Short code '{custom_code}' already exists")

        if expires_in_days is not None and expires_in_days < 1:
            raise InvalidRequestError("Expiry must be at least one day")

        mapping = URLMapping(
            short_code=custom_code or self.generator.generate(),
            original_url=original_url,
            created_at=now,
            owner_id=owner_id,
            expires_at=now + timedelta(days=expires_in_days) if expires_in_days else None,
            metadata=URLMetadata(title=title, description=description, tags=list(tags or [])),
        )

        mapping = await self._insert(mapping, retry_on_conflict=not custom_code)

        # Drop anything cached under this code before it was (re)assigned
        await self._invalidate(mapping.short_code)

        if not title and self.title_fetcher is not None:
            self._spawn(
                self._backfill_title(mapping.short_code, mapping.original_url),
                f"title backfill for {mapping.short_code}",
            )

        self.logger.info(f"Created short URL: {mapping.short_code} -> {original_url}")
        return mapping, True

    async def _insert(self, mapping: URLMapping, retry_on_conflict: bool) -> URLMapping:
        attempts = self.max_collision_retries if retry_on_conflict else 1
        for attempt in range(1, attempts + 1):
            try:
                return await self.db.insert(mapping)
            except DuplicateKeyError:
                if attempt == attempts:
                    break
                self.logger.debug(f"Short code collision on {mapping.short_code}, attempt {attempt}")
                mapping.short_code = self.generator.generate()

        raise CodeConflictError(f"Short code '{mapping.short_code}' already exists")

    @store_errors("resolve")
    async def resolve(self, short_code: str, visit: Optional[Visit] = None) -> URLMapping:
        """Resolve a short code for redirection and count the visit.

        A cache hit returns at once and records the visit in the background.
        A miss records the visit synchronously and caches the updated record.

        Raises:
            NotFoundError: If no resolvable mapping exists
        """
        visit = visit or Visit(timestamp=self.clock())

        cached = await self._get_cached_mapping(short_code)
        if cached is not None:
            if cached.is_resolvable(visit.timestamp):
                self.logger.debug(f"Cache hit for {short_code}")
                self._spawn(
                    self._record_visit_in_background(short_code, visit),
                    f"visit update for {short_code}",
                )
                return cached
            await self._invalidate(short_code)

        mapping = await self.db.record_visit(short_code, visit)
        if mapping is None:
            self.logger.info(f"Short code not found: {short_code}")
            raise NotFoundError(f"Short code '{short_code}' not found")

        await self._cache_mapping(mapping)
        self.logger.debug(f"Resolved {short_code} -> {mapping.original_url} (clicks={mapping.clicks})")
        return mapping

    @store_errors("lookup")
    async def get_url_info(self, short_code: str) -> URLMapping:
        """Get a resolvable mapping without counting a visit.

        Raises:
            NotFoundError: If no resolvable mapping exists
        """
        mapping = await self.db.get_resolvable(short_code, self.clock())
        if mapping is None:
            raise NotFoundError(f"Short code '{short_code}' not found")
        return mapping

    @store_errors("stats")
    async def get_url_stats(self, short_code: str) -> Dict[str, Any]:
        """Aggregate click analytics for a short code.

        Results are cached separately from the mapping record.

        Raises:
            NotFoundError: If no resolvable mapping exists
        """
        now = self.clock()

        if self.cache:
            cached = await self.cache.get(self.cache.get_stats_cache_key(short_code))
            if cached is not None and URLMapping.from_dict(cached["mapping"]).is_resolvable(now):
                return cached

        mapping = await self.db.get_resolvable(short_code, now, with_analytics=True)
        if mapping is None:
            raise NotFoundError(f"Short code '{short_code}' not found")

        stats = build_url_stats(mapping, now)
        if self.cache:
            await self.cache.set(
                self.cache.get_stats_cache_key(short_code),
                stats,
                ttl=self.cache_ttl_seconds,
            )
        return stats

    @store_errors("list")
    async def list_urls(
        self,
        owner_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[URLMapping]:
        """List an owner's mappings (anonymous ones when owner is None), newest first."""
        return await self.db.list_by_owner(owner_id, limit=limit, offset=offset)

    @store_errors("delete")
    async def delete_short_url(self, short_code: str, owner_id: Optional[str] = None) -> None:
        """Soft-delete a short URL.

        Raises:
            NotFoundError: If the code is unknown, already deleted or owned by someone else
            UnauthorizedError: If the mapping is owned and no identity was given
        """
        mapping = await self.db.get_by_code(short_code)
        if mapping is None or not mapping.is_active:
            raise NotFoundError(f"Short code '{short_code}' not found")

        if mapping.owner_id is not None:
            if owner_id is None:
                raise UnauthorizedError("Authentication required to delete this short URL")
            if owner_id != mapping.owner_id:
                raise NotFoundError(f"Short code '{short_code}' not found")

        if not await self.db.soft_delete(short_code, owner_id=mapping.owner_id):
            raise NotFoundError(f"Short code '{short_code}' not found")

        await self._invalidate(short_code, include_stats=True)
        self.logger.info(f"Deleted short URL: {short_code}")

    @store_errors("statistics")
    async def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics."""
        db_stats = await self.db.get_statistics()

        return {
            **db_stats,
            "cache_enabled": self.cache is not None and self.cache.enabled,
            "custom_codes_enabled": self.enable_custom_codes,
        }

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check."""
        db_healthy = await self.db.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def wait_for_background_tasks(self) -> None:
        """Wait until detached visit updates and title fetches have finished."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def close(self) -> None:
        """Flush background work and close service connections."""
        await self.wait_for_background_tasks()
        await self.db.close()
        if self.cache:
            await self.cache.close()

    def _spawn(self, coro: Awaitable[None], description: str) -> None:
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(lambda t: self._on_background_done(t, description))

    def _on_background_done(self, task: asyncio.Task, description: str) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            self.logger.warning(f"Background task cancelled: {description}")
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(f"Background task failed ({description}): {exc}", exc_info=exc)

    async def _record_visit_in_background(self, short_code: str, visit: Visit) -> None:
        mapping = await self.db.record_visit(short_code, visit)
        if mapping is None:
            self.logger.warning(f"Dropped visit for {short_code}: no resolvable mapping in store")

    async def _backfill_title(self, short_code: str, url: str) -> None:
        title = await self.title_fetcher.fetch_title(url)
        if not title:
            self.logger.debug(f"No title found for {url}")
            return

        if await self.db.update_title(short_code, title):
            await self._invalidate(short_code)
            self.logger.debug(f"Backfilled title for {short_code}: {title!r}")

    async def _get_cached_mapping(self, short_code: str) -> Optional[URLMapping]:
        if not self.cache:
            return None
        data = await self.cache.get(self.cache.get_cache_key(short_code))
        return URLMapping.from_dict(data) if data else None

    async def _cache_mapping(self, mapping: URLMapping) -> None:
        if self.cache:
            await self.cache.set(
                self.cache.get_cache_key(mapping.short_code),
                mapping.to_dict(include_analytics=False),
                ttl=self.cache_ttl_seconds,
            )

    async def _invalidate(self, short_code: str, include_stats: bool = False) -> None:
        if not self.cache:
            return
        await self.cache.delete(self.cache.get_cache_key(short_code))
        if include_stats:
            await self.cache.delete(self.cache.get_stats_cache_key(short_code))
