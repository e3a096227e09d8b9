"""Abstract base class for URL shortener database implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from datetime import datetime

from .models import URLMapping, Visit


class DuplicateKeyError(Exception):
    """Raised when inserting a short code that already exists."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' already exists")
        self.short_code = short_code


class URLShortenerDBBase(ABC):
    """Abstract base class for URL shortener database operations.

    Every query named ``*resolvable*`` and :meth:`record_visit` only match
    mappings that are active and not past ``expires_at``.
    """

    def __init__(self, db_config: str, max_analytics_entries: Optional[int] = None):
        """Initialize database connection.

        Args:
            db_config: Database connection string
            max_analytics_entries: Visits kept per mapping (None keeps all)
        """
        self.db_config = db_config
        self.max_analytics_entries = max_analytics_entries

    @abstractmethod
    async def insert(self, mapping: URLMapping) -> URLMapping:
        """Insert a new short URL mapping.

        Args:
            mapping: The mapping to store

        Returns:
            The stored mapping

        Raises:
            DuplicateKeyError: If the short code is already assigned
        """
        pass

    @abstractmethod
    async def get_by_code(
        self,
        short_code: str,
        with_analytics: bool = False,
    ) -> Optional[URLMapping]:
        """Get a mapping regardless of its active or expiry state.

        Args:
            short_code: The short code to lookup
            with_analytics: Whether to load the visit log

        Returns:
            The mapping or None if the code was never assigned
        """
        pass

    @abstractmethod
    async def get_resolvable(
        self,
        short_code: str,
        now: datetime,
        with_analytics: bool = False,
    ) -> Optional[URLMapping]:
        """Get a mapping only if it is resolvable at ``now``."""
        pass

    @abstractmethod
    async def find_resolvable_by_url(
        self,
        original_url: str,
        owner_id: Optional[str],
        now: datetime,
    ) -> Optional[URLMapping]:
        """Find a resolvable mapping for the same destination and owner.

        Args:
            original_url: Destination URL
            owner_id: Owner to scope the lookup to (None for anonymous)
            now: Reference time for expiry

        Returns:
            The most recent matching mapping or None
        """
        pass

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: Optional[str],
        limit: int = 50,
        offset: int = 0,
    ) -> List[URLMapping]:
        """List non-deleted mappings for an owner, newest first."""
        pass

    @abstractmethod
    async def record_visit(self, short_code: str, visit: Visit) -> Optional[URLMapping]:
        """Atomically count a visit and append it to the analytics log.

        Increments ``clicks``, sets ``last_accessed`` to the visit timestamp
        and appends the visit, trimming the log to ``max_analytics_entries``.

        Args:
            short_code: The short code that was visited
            visit: The visit to record

        Returns:
            The updated mapping (without analytics) or None if no
            resolvable mapping matched
        """
        pass

    @abstractmethod
    async def soft_delete(self, short_code: str, owner_id: Optional[str] = None) -> bool:
        """Mark a mapping inactive.

        Args:
            short_code: The short code to delete
            owner_id: When given, only a mapping owned by it is deleted

        Returns:
            True if an active mapping was deactivated
        """
        pass

    @abstractmethod
    async def update_title(self, short_code: str, title: str) -> bool:
        """Set ``metadata.title`` if it is still empty.

        Returns:
            True if the title was written
        """
        pass

    @abstractmethod
    async def short_code_exists(self, short_code: str) -> bool:
        """Check if a short code was ever assigned, deleted or not."""
        pass

    @abstractmethod
    async def get_statistics(self) -> Dict[str, Any]:
        """Get database statistics.

        Returns:
            Dictionary with total_urls, active_urls, total_clicks, database
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close database connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if database is healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
