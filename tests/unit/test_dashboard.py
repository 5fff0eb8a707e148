"""
Unit Tests - Dashboard Statistics
"""
import asyncio

import pytest
from sqlalchemy import text

from realty_api.serving import dashboard
from realty_api.serving.dashboard import DashboardStats, compute_dashboard_stats


@pytest.fixture
async def platform_rows(insert_rows):
    await insert_rows(
        "properties",
        [
            {"id": "p1", "title": "Loft", "verified": True},
            {"id": "p2", "title": "Villa", "verified": True},
            {"id": "p3", "title": "Studio", "verified": False},
        ],
    )
    await insert_rows(
        "profiles",
        [
            {"profiles_id": "u1", "status": "active"},
            {"profiles_id": "u2", "status": "active"},
            {"profiles_id": "u3", "status": "suspended"},
        ],
    )
    await insert_rows(
        "property_inquiries",
        [
            {"id": "i1", "status": "pending"},
            {"id": "i2", "status": "answered"},
        ],
    )
    await insert_rows(
        "contact_submissions",
        [
            {"id": "c1", "status": "pending"},
            {"id": "c2", "status": "pending"},
        ],
    )


class TestDashboardStats:
    """Tests for the dashboard aggregate"""

    async def test_counts(self, session_factory, platform_rows):
        stats = await compute_dashboard_stats(session_factory, timeout=5)

        assert stats.total_properties == 2
        assert stats.active_users == 2
        assert stats.pending_inquiries == 3

    async def test_empty_tables(self, session_factory):
        stats = await compute_dashboard_stats(session_factory)

        assert stats == DashboardStats.empty()

    async def test_response_uses_camel_case(self):
        stats = DashboardStats(total_properties=1, active_users=2, pending_inquiries=3)

        assert stats.to_response() == {
            "totalProperties": 1,
            "activeUsers": 2,
            "pendingInquiries": 3,
        }

    async def test_timeout(self, session_factory, monkeypatch):
        async def slow_count(*args):
            await asyncio.sleep(1)
            return 0

        monkeypatch.setattr(dashboard, "_count", slow_count)

        with pytest.raises(asyncio.TimeoutError):
            await compute_dashboard_stats(session_factory, timeout=0.01)

    async def test_failed_query_counts_as_zero(self, session_factory, platform_rows):
        async with session_factory() as session:
            async with session.begin():
                await session.execute(text("DROP TABLE contact_submissions"))

        stats = await compute_dashboard_stats(session_factory)

        assert stats.total_properties == 2
        assert stats.active_users == 2
        assert stats.pending_inquiries == 1

    async def test_unexpected_error_fails_the_aggregate(self, session_factory, monkeypatch):
        async def broken_count(*args):
            raise RuntimeError("driver bug")

        monkeypatch.setattr(dashboard, "_count", broken_count)

        with pytest.raises(RuntimeError, match="driver bug"):
            await compute_dashboard_stats(session_factory)
