"""Data models for URL shortener."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class Visit:
    """A single redirect recorded for analytics."""

    timestamp: datetime
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "timestamp": _to_iso(self.timestamp),
            "ip": self.ip,
            "user_agent": self.user_agent,
            "referrer": self.referrer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Visit":
        """Create from dictionary."""
        return cls(
            timestamp=_from_iso(data["timestamp"]),
            ip=data.get("ip"),
            user_agent=data.get("user_agent"),
            referrer=data.get("referrer"),
        )


@dataclass
class URLMetadata:
    """Descriptive metadata attached to a mapping."""

    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class URLMapping:
    """Represents a URL mapping in the database."""

    short_code: str
    original_url: str
    created_at: datetime
    owner_id: Optional[str] = None
    clicks: int = 0
    last_accessed: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True
    metadata: URLMetadata = field(default_factory=URLMetadata)
    analytics: List[Visit] = field(default_factory=list)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the expiry timestamp has passed."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now

    def is_resolvable(self, now: Optional[datetime] = None) -> bool:
        """Whether the mapping may be used for redirects and stats."""
        return self.is_active and not self.is_expired(now)

    def to_dict(self, include_analytics: bool = True) -> Dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        data = {
            "short_code": self.short_code,
            "original_url": self.original_url,
            "owner_id": self.owner_id,
            "clicks": self.clicks,
            "created_at": _to_iso(self.created_at),
            "last_accessed": _to_iso(self.last_accessed),
            "expires_at": _to_iso(self.expires_at),
            "is_active": self.is_active,
            "title": self.metadata.title,
            "description": self.metadata.description,
            "tags": list(self.metadata.tags),
        }
        if include_analytics:
            data["analytics"] = [visit.to_dict() for visit in self.analytics]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "URLMapping":
        """Create from dictionary."""
        return cls(
            short_code=data["short_code"],
            original_url=data["original_url"],
            created_at=_from_iso(data["created_at"]),
            owner_id=data.get("owner_id"),
            clicks=data.get("clicks", 0),
            last_accessed=_from_iso(data.get("last_accessed")),
            expires_at=_from_iso(data.get("expires_at")),
            is_active=data.get("is_active", True),
            metadata=URLMetadata(
                title=data.get("title"),
                description=data.get("description"),
                tags=list(data.get("tags") or []),
            ),
            analytics=[Visit.from_dict(v) for v in data.get("analytics") or []],
        )
