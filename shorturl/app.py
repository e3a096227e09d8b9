#!/usr/bin/env python3
"""
Main entry point for the shorturl service.

Concurrency: each worker handles many connections via async I/O (FastAPI +
asyncpg pool). The default cache is per process, so with WORKERS > 1 each
worker caches independently; set REDIS_URL to share one cache.

Usage:
    shorturl-server

Environment variables:
    DATABASE_URL - postgresql://... or memory://
    DB_CREATE_TABLES - Create tables on first connection
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager
from urllib.parse import urlparse

import uvicorn
from fastapi import FastAPI

from .config import Config, load_config
from .database import create_database, MemoryCache, RedisCache
from .service import URLShortenerService
from .shortcode import ShortCodeGenerator
from .title_fetcher import TitleFetcher
from .common.logging_config import setup_logging
from .web_app import create_app


def build_service(config: Config, logger) -> URLShortenerService:
    """Wire store, cache and service from configuration."""
    db = create_database(
        config.database_url,
        pool_max_size=config.db_pool_max_size,
        create_tables=config.db_create_tables,
        max_analytics_entries=config.max_analytics_entries,
        logger=logger,
    )

    if config.redis_url:
        redis_location = urlparse(config.redis_url)
        # Host and port only; the URL may carry a password
        logger.info(f"Using Redis cache at {redis_location.hostname}:{redis_location.port or 6379}")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
    else:
        cache = MemoryCache(
            ttl_seconds=config.cache_ttl_seconds,
            sweep_interval_seconds=config.cache_sweep_interval_seconds,
            max_entries=config.cache_max_entries,
            logger=logger,
        )

    title_fetcher = None
    if config.fetch_titles:
        title_fetcher = TitleFetcher(
            timeout_seconds=config.title_fetch_timeout_seconds,
            max_bytes=config.title_fetch_max_bytes,
            logger=logger,
        )

    return URLShortenerService(
        db=db,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        title_fetcher=title_fetcher,
        logger=logger,
        enable_custom_codes=config.enable_custom_codes,
        max_collision_retries=config.max_collision_retries,
        cache_ttl_seconds=config.cache_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting shorturl service...")

    service = build_service(config, logger)
    if service.cache:
        await service.cache.connect()

    app.state.db = service.db
    app.state.cache = service.cache
    app.state.service = service

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down shorturl service...")
    await service.close()
    logger.info("Service stopped")


def create_server_app(config: Config, logger) -> FastAPI:
    """App whose store, cache and service are created by the lifespan."""
    app = create_app(
        db_instance=None,
        cache_instance=None,
        service_instance=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def create_app_from_env() -> FastAPI:
    """App factory for uvicorn worker processes; each reads its own config."""
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )
    return create_server_app(config, logger)


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("shorturl service")
    logger.debug(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    if config.workers > 1:
        # Worker processes need an import string; uvicorn's supervisor handles signals
        logger.info(f"Starting {config.workers} workers on {config.host}:{config.port}")
        uvicorn.run(
            "shorturl.app:create_app_from_env",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=False,
        )
        return

    app = create_server_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,  # LoggingMiddleware logs requests
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
