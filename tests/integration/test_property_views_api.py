"""
Integration Tests - Property Views API
"""
from unittest.mock import AsyncMock

from httpx import ASGITransport, AsyncClient

from realty_api.config.settings import Settings, ViewSettings
from realty_api.exceptions import StoreUnavailable
from realty_api.serving.api.main import attach_services, create_api_app


def viewer(ip: str) -> dict:
    return {"X-Forwarded-For": ip}


class TestRecordView:
    """POST /api/v1/property-views/{property_id}"""

    async def test_first_view_returns_count(self, client):
        response = await client.post("/api/v1/property-views/prop-1", headers=viewer("1.2.3.4"))

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"count": 1}}

    async def test_repeat_view_same_day_is_not_counted(self, client):
        await client.post("/api/v1/property-views/prop-1", headers=viewer("1.2.3.4"))
        response = await client.post("/api/v1/property-views/prop-1", headers=viewer("1.2.3.4"))

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 1

    async def test_different_viewer_increments(self, client):
        await client.post("/api/v1/property-views/prop-1", headers=viewer("1.2.3.4"))
        response = await client.post(
            "/api/v1/property-views/prop-1",
            headers=viewer("5.6.7.8"),
        )

        assert response.json()["data"]["count"] == 2

    async def test_profile_id_in_body(self, client):
        response = await client.post(
            "/api/v1/property-views/prop-1",
            headers=viewer("1.2.3.4"),
            json={"viewer_profile_id": "user-1"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 1

    async def test_overlong_profile_id_is_rejected(self, client):
        response = await client.post(
            "/api/v1/property-views/prop-1",
            headers=viewer("1.2.3.4"),
            json={"viewer_profile_id": "u" * 65},
        )

        assert response.status_code == 422

    async def test_falls_back_to_peer_address(self, client):
        response = await client.post("/api/v1/property-views/prop-1")

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 1

    async def test_blank_property_id_is_rejected(self, client):
        response = await client.post("/api/v1/property-views/%20", headers=viewer("1.2.3.4"))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid property ID"}

    async def test_store_unavailable(self, app, client):
        counter = AsyncMock()
        counter.record_view.side_effect = StoreUnavailable("Failed to record property view")
        app.state.view_counter = counter

        response = await client.post("/api/v1/property-views/prop-1", headers=viewer("1.2.3.4"))

        assert response.status_code == 503
        assert response.json() == {"success": False, "error": "Failed to record property view"}


class TestGetViewCount:
    """GET /api/v1/property-views/{property_id} and batch lookup"""

    async def test_unknown_property_has_zero_views(self, client):
        response = await client.get("/api/v1/property-views/prop-1")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"count": 0}}

    async def test_get_does_not_record(self, client):
        await client.get("/api/v1/property-views/prop-1")
        response = await client.get("/api/v1/property-views/prop-1")

        assert response.json()["data"]["count"] == 0

    async def test_reflects_recorded_views(self, client):
        for ip in ["1.1.1.1", "2.2.2.2", "1.1.1.1"]:
            await client.post("/api/v1/property-views/prop-1", headers=viewer(ip))

        response = await client.get("/api/v1/property-views/prop-1")

        assert response.json()["data"]["count"] == 2

    async def test_batch_counts(self, client):
        await client.post("/api/v1/property-views/prop-1", headers=viewer("1.1.1.1"))

        response = await client.get("/api/v1/property-views", params=[("ids", "prop-1"), ("ids", "prop-2")])

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {"counts": {"prop-1": 1, "prop-2": 0}},
        }

    async def test_batch_requires_ids(self, client):
        response = await client.get("/api/v1/property-views")

        assert response.status_code == 422


async def record_from(settings, session_factory, forwarded_ips):
    """POST one view per X-Forwarded-For value from the same socket peer"""
    app = create_api_app(settings)
    attach_services(app, session_factory, settings)

    counts = []
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        for ip in forwarded_ips:
            response = await http.post("/api/v1/property-views/prop-1", headers=viewer(ip))
            counts.append(response.json()["data"]["count"])
    return counts


class TestForwardedFor:
    """X-Forwarded-For is only honoured from trusted proxies"""

    async def test_header_ignored_by_default(self, session_factory):
        settings = Settings(APP_ENV="testing")

        counts = await record_from(settings, session_factory, [f"10.0.0.{i}" for i in range(5)])

        assert settings.views.trust_forwarded_for is False
        assert counts == [1, 1, 1, 1, 1]

    async def test_header_ignored_from_untrusted_peer(self, session_factory):
        settings = Settings(
            APP_ENV="testing",
            views=ViewSettings(trust_forwarded_for=True, trusted_proxies=["10.1.1.1"]),
        )

        counts = await record_from(settings, session_factory, [f"10.0.0.{i}" for i in range(5)])

        assert counts == [1, 1, 1, 1, 1]

    async def test_header_used_from_trusted_proxy(self, session_factory):
        settings = Settings(
            APP_ENV="testing",
            views=ViewSettings(trust_forwarded_for=True, trusted_proxies=["127.0.0.1"]),
        )

        counts = await record_from(settings, session_factory, ["10.0.0.1", "10.0.0.2", "10.0.0.1"])

        assert counts == [1, 2, 2]
