"""
Test Suite Configuration
"""
import pytest
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from realty_api.config.settings import DashboardSettings, Settings, ViewSettings
from realty_api.database.connection import build_engine, build_session_factory
from realty_api.database.models import Base
from realty_api.serving.api.main import attach_services, create_api_app
from realty_api.views.counter import ViewCounter
from realty_api.views.store import PropertyViewStore

# Platform-owned tables read by the dashboard queries
PLATFORM_TABLES = [
    "CREATE TABLE properties (id VARCHAR(36) PRIMARY KEY, title TEXT, verified BOOLEAN NOT NULL DEFAULT 0)",
    "CREATE TABLE profiles (profiles_id VARCHAR(36) PRIMARY KEY, status TEXT)",
    "CREATE TABLE property_inquiries (id VARCHAR(36) PRIMARY KEY, status TEXT)",
    "CREATE TABLE contact_submissions (id VARCHAR(36) PRIMARY KEY, status TEXT)",
]


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        APP_ENV="testing",
        views=ViewSettings(timezone="UTC", trust_forwarded_for=True, trusted_proxies=["127.0.0.1"]),
        dashboard=DashboardSettings(stats_cache_ttl_ms=4000, stats_cache_backend="memory"),
    )


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine so concurrent sessions use separate connections"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'realty.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        for ddl in PLATFORM_TABLES:
            await conn.execute(text(ddl))

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest.fixture
def view_store(session_factory) -> PropertyViewStore:
    return PropertyViewStore(session_factory)


@pytest.fixture
def view_counter(view_store) -> ViewCounter:
    return ViewCounter(view_store)


@pytest.fixture
def app(test_settings, session_factory):
    """API application wired to the test database"""
    application = create_api_app(test_settings)
    attach_services(application, session_factory, test_settings)
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
def insert_rows(session_factory):
    """Insert raw rows into a platform table"""

    async def _insert(table: str, rows: list) -> None:
        async with session_factory() as session:
            async with session.begin():
                for row in rows:
                    columns = ", ".join(row)
                    placeholders = ", ".join(f":{name}" for name in row)
                    await session.execute(
                        text(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"),
                        row,
                    )

    return _insert
