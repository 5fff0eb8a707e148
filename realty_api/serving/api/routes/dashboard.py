"""
Dashboard API Endpoints

Admin dashboard statistics, served through the stats cache so frequent
polling does not hit the database on every request.
"""

import asyncio

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from realty_api.config.settings import Settings
from realty_api.exceptions import ComputeFailure
from realty_api.serving.api.dependencies import (
    get_app_settings,
    get_dashboard_cache,
    get_session_factory,
)
from realty_api.serving.dashboard import DashboardStats, compute_dashboard_stats
from realty_api.serving.stats_cache import StatsCache

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/stats")
async def get_dashboard_stats(
    cache: StatsCache = Depends(get_dashboard_cache),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    settings: Settings = Depends(get_app_settings),
):
    """
    Get dashboard statistics.

    Counts verified properties, active users and pending inquiries
    (property inquiries plus contact submissions).
    """
    async def compute():
        stats = await compute_dashboard_stats(
            session_factory,
            timeout=settings.dashboard.query_timeout_seconds,
        )
        return stats.to_response()

    try:
        return await cache.get_or_compute(compute)
    except ComputeFailure as e:
        empty = DashboardStats.empty().to_response()

        if isinstance(e.__cause__, asyncio.TimeoutError):
            logger.error("Dashboard queries timeout reached")
            return JSONResponse(
                status_code=408,
                content={"error": "Request timeout while fetching dashboard statistics", **empty},
            )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch dashboard statistics",
                "details": str(e.__cause__),
                **empty,
            },
        )
