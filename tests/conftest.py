"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient

from shorturl.config import Config
from shorturl.database import URLShortenerMemoryDB, MemoryCache
from shorturl.service import URLShortenerService
from shorturl.shortcode import ShortCodeGenerator
from shorturl.common.logging_config import setup_logging
from shorturl.web_app import create_app


class FakeClock:
    """Controllable time source for both wall-clock and monotonic callers."""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start
        self.monotonic = 1000.0

    def __call__(self) -> datetime:
        return self.now

    def tick(self) -> float:
        return self.monotonic

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
        self.monotonic += seconds


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_db(logger) -> URLShortenerMemoryDB:
    """Create in-memory database instance."""
    return URLShortenerMemoryDB(logger=logger)


@pytest.fixture
def cache(clock, logger) -> MemoryCache:
    return MemoryCache(ttl_seconds=300, clock=clock.tick, logger=logger)


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=8)


@pytest.fixture
async def service(test_db, cache, short_code_generator, logger, clock) -> AsyncGenerator[URLShortenerService, None]:
    """Create service instance backed by the memory store and cache."""
    service = URLShortenerService(
        db=test_db,
        cache=cache,
        short_code_generator=short_code_generator,
        logger=logger,
        clock=clock,
    )
    yield service
    await service.close()


@pytest.fixture
def config():
    return Config(
        database_url="memory://",
        base_url="http://testserver",
        fetch_titles=False,
        rate_limit_requests=0,
    )


@pytest.fixture
def app(test_db, cache, service, config):
    """Create test FastAPI app."""
    return create_app(
        db_instance=test_db,
        cache_instance=cache,
        service_instance=service,
        config=config,
    )


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app, client=("203.0.113.7", 51000))
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
