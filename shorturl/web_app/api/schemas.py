"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    original_url: str = Field(..., description="The URL to shorten", min_length=1, max_length=2048)
    custom_code: Optional[str] = Field(None, description="Optional custom short code")
    expires_in: Optional[int] = Field(None, ge=1, le=3650, description="Lifetime in days")
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=2000)
    tags: List[str] = Field(default_factory=list, max_length=20)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "original_url": "https://example.com/very/long/path/to/resource",
                },
                {
                    "original_url": "https://github.com/user/repo",
                    "custom_code": "myrepo",
                    "expires_in": 30,
                    "tags": ["code"],
                }
            ]
        }
    }


class ShortURLResponse(BaseModel):
    """A short URL mapping."""

    short_code: str = Field(..., description="The short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    owner_id: Optional[str] = None
    clicks: int = 0
    created_at: datetime
    last_accessed: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ShortURLListResponse(BaseModel):
    """Page of short URL mappings."""

    count: int
    limit: int
    offset: int
    urls: List[ShortURLResponse]


class CountEntry(BaseModel):
    value: str
    count: int


class URLStatsResponse(BaseModel):
    """Click analytics for one short URL."""

    short_code: str
    short_url: str
    original_url: str
    created_at: datetime
    last_accessed: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    title: Optional[str] = None
    total_clicks: int
    last_day_clicks: int
    last_week_clicks: int
    by_referrer: List[CountEntry]
    by_user_agent: List[CountEntry]
    by_device: List[CountEntry]
    generated_at: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Stable error code")
    detail: Optional[str] = Field(None, description="Detailed error information")


class StatisticsResponse(BaseModel):
    """Statistics response."""

    total_urls: int
    active_urls: int
    total_clicks: int
    database: str
    cache_enabled: bool
    custom_codes_enabled: bool
