"""In-process implementation of the mapping store.

Used by the test-suite and for ``memory://`` database URLs during local
development. State lives only as long as the process.
"""

import asyncio
import copy
import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, List, Dict, Any

from .base import URLShortenerDBBase, DuplicateKeyError
from .models import URLMapping, Visit


class URLShortenerMemoryDB(URLShortenerDBBase):
    """Dictionary-backed store keyed by short code."""

    def __init__(
        self,
        db_config: str = "memory://",
        max_analytics_entries: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(db_config, max_analytics_entries)
        self.logger = logger or logging.getLogger(__name__)
        self._mappings: Dict[str, URLMapping] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _snapshot(mapping: URLMapping, with_analytics: bool) -> URLMapping:
        # Callers get copies so they cannot mutate stored state
        snapshot = copy.deepcopy(mapping)
        if not with_analytics:
            snapshot.analytics = []
        return snapshot

    async def insert(self, mapping: URLMapping) -> URLMapping:
        async with self._lock:
            if mapping.short_code in self._mappings:
                raise DuplicateKeyError(mapping.short_code)
            self._mappings[mapping.short_code] = copy.deepcopy(mapping)
        self.logger.debug(f"Inserted mapping {mapping.short_code} -> {mapping.original_url}")
        return self._snapshot(mapping, with_analytics=True)

    async def get_by_code(
        self,
        short_code: str,
        with_analytics: bool = False,
    ) -> Optional[URLMapping]:
        mapping = self._mappings.get(short_code)
        if mapping is None:
            return None
        return self._snapshot(mapping, with_analytics)

    async def get_resolvable(
        self,
        short_code: str,
        now: datetime,
        with_analytics: bool = False,
    ) -> Optional[URLMapping]:
        mapping = self._mappings.get(short_code)
        if mapping is None or not mapping.is_resolvable(now):
            return None
        return self._snapshot(mapping, with_analytics)

    async def find_resolvable_by_url(
        self,
        original_url: str,
        owner_id: Optional[str],
        now: datetime,
    ) -> Optional[URLMapping]:
        candidates = [
            m for m in self._mappings.values()
            if m.original_url == original_url
            and m.owner_id == owner_id
            and m.is_resolvable(now)
        ]
        if not candidates:
            return None
        newest = max(candidates, key=lambda m: m.created_at)
        return self._snapshot(newest, with_analytics=False)

    async def list_by_owner(
        self,
        owner_id: Optional[str],
        limit: int = 50,
        offset: int = 0,
    ) -> List[URLMapping]:
        owned = [
            m for m in self._mappings.values()
            if m.owner_id == owner_id and m.is_active
        ]
        owned.sort(key=lambda m: m.created_at, reverse=True)
        return [self._snapshot(m, with_analytics=False) for m in owned[offset:offset + limit]]

    async def record_visit(self, short_code: str, visit: Visit) -> Optional[URLMapping]:
        async with self._lock:
            mapping = self._mappings.get(short_code)
            if mapping is None or not mapping.is_resolvable(visit.timestamp):
                return None

            mapping.clicks += 1
            mapping.last_accessed = visit.timestamp
            mapping.analytics.append(replace(visit))
            if self.max_analytics_entries and len(mapping.analytics) > self.max_analytics_entries:
                del mapping.analytics[:-self.max_analytics_entries]

            self.logger.debug(f"Recorded visit for {short_code}: clicks={mapping.clicks}")
            return self._snapshot(mapping, with_analytics=False)

    async def soft_delete(self, short_code: str, owner_id: Optional[str] = None) -> bool:
        async with self._lock:
            mapping = self._mappings.get(short_code)
            if mapping is None or not mapping.is_active:
                return False
            if owner_id is not None and mapping.owner_id != owner_id:
                return False
            mapping.is_active = False
        return True

    async def update_title(self, short_code: str, title: str) -> bool:
        async with self._lock:
            mapping = self._mappings.get(short_code)
            if mapping is None or mapping.metadata.title:
                return False
            mapping.metadata.title = title
        return True

    async def short_code_exists(self, short_code: str) -> bool:
        return short_code in self._mappings

    async def get_statistics(self) -> Dict[str, Any]:
        mappings = list(self._mappings.values())
        return {
            "total_urls": len(mappings),
            "active_urls": sum(1 for m in mappings if m.is_active),
            "total_clicks": sum(m.clicks for m in mappings),
            "database": "memory",
        }

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass
