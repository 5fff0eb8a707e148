"""
Dashboard Statistics

Aggregate counts for the admin dashboard. The listing, profile, inquiry and
contact tables belong to the platform schema, so they are queried with plain
SQL instead of mapped models.
"""

import asyncio
from typing import Any, Dict, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = structlog.get_logger(__name__)


COUNT_QUERIES = {
    "verified_properties": (
        "SELECT COUNT(*) FROM properties WHERE verified = :verified",
        {"verified": True},
    ),
    "active_users": (
        "SELECT COUNT(*) FROM profiles WHERE status = :status",
        {"status": "active"},
    ),
    "pending_property_inquiries": (
        "SELECT COUNT(*) FROM property_inquiries WHERE status = :status",
        {"status": "pending"},
    ),
    "pending_contact_submissions": (
        "SELECT COUNT(*) FROM contact_submissions WHERE status = :status",
        {"status": "pending"},
    ),
}


# Failures of a single query; anything else fails the whole aggregate
QUERY_ERRORS = (SQLAlchemyError, OSError)


class DashboardStats(BaseModel):
    """Dashboard statistics payload"""

    model_config = ConfigDict(populate_by_name=True)

    total_properties: int = Field(alias="totalProperties")
    active_users: int = Field(alias="activeUsers")
    pending_inquiries: int = Field(alias="pendingInquiries")

    @classmethod
    def empty(cls) -> "DashboardStats":
        return cls(total_properties=0, active_users=0, pending_inquiries=0)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


async def _count(
    session_factory: async_sessionmaker[AsyncSession],
    sql: str,
    params: Dict[str, Any],
) -> int:
    async with session_factory() as session:
        result = await session.execute(text(sql), params)
        return result.scalar() or 0


async def compute_dashboard_stats(
    session_factory: async_sessionmaker[AsyncSession],
    timeout: Optional[float] = None,
) -> DashboardStats:
    """
    Run the dashboard count queries concurrently.

    A query that fails with a database error is logged and counted as 0;
    the other counts are still returned.

    Args:
        session_factory: Session factory; each query gets its own session
        timeout: Overall timeout in seconds for all queries

    Raises:
        TimeoutError: The queries did not finish within ``timeout``
    """
    logger.info("Fetching fresh dashboard stats from database")

    names = list(COUNT_QUERIES)
    queries = asyncio.gather(
        *(_count(session_factory, *COUNT_QUERIES[name]) for name in names),
        return_exceptions=True,
    )
    results = await asyncio.wait_for(queries, timeout=timeout)

    counts = {}
    for name, result in zip(names, results):
        if isinstance(result, QUERY_ERRORS):
            logger.error(
                "Dashboard count query failed",
                query=name,
                error=str(result),
                error_type=type(result).__name__,
            )
            counts[name] = 0
        elif isinstance(result, Exception):
            raise result
        else:
            counts[name] = result

    return DashboardStats(
        total_properties=counts["verified_properties"],
        active_users=counts["active_users"],
        pending_inquiries=counts["pending_property_inquiries"] + counts["pending_contact_submissions"],
    )
