"""
FastAPI Application Factory

Creates and configures the API application, and wires the view counter and
stats cache onto ``app.state``.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.asyncio import Redis
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from realty_api.config import Settings, get_settings
from realty_api.exceptions import StoreUnavailable, ValidationError
from realty_api.serving.api.middleware import (
    RequestLoggingMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from realty_api.serving.api.routes import (
    health_router,
    property_views_router,
    dashboard_router,
)
from realty_api.serving.stats_cache import MemorySlot, RedisSlot, StatsCache
from realty_api.views.counter import ViewCounter
from realty_api.views.store import PropertyViewStore

logger = structlog.get_logger(__name__)

DASHBOARD_CACHE_NAME = "dashboard_stats"


def attach_services(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    redis_client: Optional[Redis] = None,
) -> None:
    """
    Build the per-process services and store them on ``app.state``.

    The dashboard cache uses Redis only when configured for it and a client
    is available; otherwise it falls back to an in-process slot.
    """
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.view_counter = ViewCounter(
        PropertyViewStore(session_factory),
        tz=settings.views.tzinfo,
    )

    if settings.dashboard.stats_cache_backend == "redis" and redis_client is not None:
        slot = RedisSlot(redis_client, key=f"{settings.app_name}:stats:{DASHBOARD_CACHE_NAME}")
    else:
        if settings.dashboard.stats_cache_backend == "redis":
            logger.warning("Redis unavailable, dashboard stats cache is per-process")
        slot = MemorySlot()

    app.state.dashboard_cache = StatsCache(
        DASHBOARD_CACHE_NAME,
        ttl_ms=settings.dashboard.stats_cache_ttl_ms,
        slot=slot,
    )


def create_api_app(settings: Optional[Settings] = None, lifespan=None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Realty Admin API",
        description="Property view counting and admin dashboard statistics",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.security.rate_limit_requests,
        window_seconds=settings.security.rate_limit_window_seconds,
    )

    # Outermost: later middleware sees the forwarded client as the peer
    if settings.views.trust_forwarded_for:
        app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.views.trusted_proxies)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"success": False, "error": exc.message})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=503, content={"success": False, "error": exc.message})

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(property_views_router, prefix="/api/v1/property-views", tags=["Property Views"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Realty Admin API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    if settings.monitoring.metrics_enabled:
        @app.get("/metrics", include_in_schema=False)
        async def metrics():
            """Prometheus scrape endpoint."""
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
