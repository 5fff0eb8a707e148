"""
Unit Tests - Configuration and Logging
"""
import logging
from zoneinfo import ZoneInfo

import pytest
import structlog
from pydantic import ValidationError as SettingsError
from structlog.stdlib import ProcessorFormatter

from realty_api.config.logging import configure_logging
from realty_api.config.settings import (
    DashboardSettings,
    DatabaseSettings,
    RedisSettings,
    Settings,
    ViewSettings,
)


class TestSettings:
    """Tests for settings sections"""

    def test_defaults(self):
        dashboard = DashboardSettings()
        views = ViewSettings()

        assert dashboard.stats_cache_ttl_ms == 4000
        assert dashboard.stats_cache_backend == "memory"
        assert views.tzinfo == ZoneInfo("UTC")
        assert views.trust_forwarded_for is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_STATS_CACHE_TTL_MS", "1500")
        monkeypatch.setenv("DASHBOARD_STATS_CACHE_BACKEND", "REDIS")
        monkeypatch.setenv("VIEWS_TIMEZONE", "Asia/Beirut")

        assert DashboardSettings().stats_cache_ttl_ms == 1500
        assert DashboardSettings().stats_cache_backend == "redis"
        assert ViewSettings().tzinfo == ZoneInfo("Asia/Beirut")

    def test_unknown_time_zone_is_rejected(self):
        with pytest.raises(SettingsError):
            ViewSettings(timezone="Mars/Olympus_Mons")

    def test_unknown_backend_is_rejected(self):
        with pytest.raises(SettingsError):
            DashboardSettings(stats_cache_backend="memcached")

    def test_negative_ttl_is_rejected(self):
        with pytest.raises(SettingsError):
            DashboardSettings(stats_cache_ttl_ms=-1)

    def test_unknown_environment_is_rejected(self):
        with pytest.raises(SettingsError):
            Settings(APP_ENV="qa")

    def test_database_url(self, monkeypatch):
        monkeypatch.delenv("POSTGRES_URL", raising=False)
        db = DatabaseSettings(host="db", port=5433, db="listings", user="app", password="pw")

        assert db.async_url == "postgresql+asyncpg://app:pw@db:5433/listings"

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("POSTGRES_URL", "sqlite+aiosqlite:///./realty.db")

        assert DatabaseSettings().async_url == "sqlite+aiosqlite:///./realty.db"

    def test_redis_url(self, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)

        assert RedisSettings(host="cache", port=6380, db=2).get_url() == "redis://cache:6380/2"

    def test_production_flag(self):
        assert Settings(APP_ENV="production").is_production
        assert not Settings(APP_ENV="testing").is_production


class TestLogging:
    """Tests for configure_logging"""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        level = root.level
        yield
        for handler in root.handlers[:]:
            if isinstance(handler.formatter, ProcessorFormatter):
                root.removeHandler(handler)
        root.setLevel(level)
        structlog.reset_defaults()

    def test_configures_root_and_server_loggers(self, test_settings):
        configure_logging("DEBUG", settings=test_settings)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("uvicorn.access").handlers == root.handlers
        assert logging.getLogger("uvicorn.access").propagate is False

    def test_sql_echo_follows_database_setting(self, test_settings):
        configure_logging(settings=test_settings)

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestProxySettings:
    """Tests for forwarded-header trust settings"""

    def test_forwarded_for_is_off_by_default(self, monkeypatch):
        monkeypatch.delenv("VIEWS_TRUST_FORWARDED_FOR", raising=False)

        assert ViewSettings().trust_forwarded_for is False

    def test_wildcard_proxy_is_rejected(self):
        with pytest.raises(SettingsError):
            ViewSettings(trust_forwarded_for=True, trusted_proxies=["*"])
