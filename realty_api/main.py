"""
FastAPI Production Application

Main entry point for the Realty Admin API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from realty_api.config import get_settings
from realty_api.config.logging import configure_logging
from realty_api.database.connection import (
    close_database,
    create_schema,
    get_session_factory,
    init_database,
)
from realty_api.serving.cache import close_redis, init_redis
from realty_api.serving.api.main import attach_services, create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging(settings=settings)

    logger.info("Starting Realty Admin API", environment=settings.app_env)

    # The record store is required; fail startup without it
    engine = await init_database(settings.database)
    if settings.database.create_schema:
        await create_schema(engine)

    redis_client = None
    if settings.dashboard.stats_cache_backend == "redis":
        try:
            redis_client = await init_redis(settings.redis)
        except Exception as e:
            logger.warning("Redis init failed", error=str(e))

    attach_services(app, get_session_factory(), settings, redis_client=redis_client)

    yield

    logger.info("Shutting down...")
    await close_database()
    await close_redis()


app = create_api_app(settings, lifespan=lifespan)


def run() -> None:
    """Console entry point: serve the API with Uvicorn."""
    import uvicorn

    uvicorn.run(
        "realty_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        # X-Forwarded-For is handled inside the app
        proxy_headers=False,
    )


if __name__ == "__main__":
    run()
