"""
Request-scoped accessors for the services built at startup.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from realty_api.config.settings import Settings
from realty_api.serving.stats_cache import StatsCache
from realty_api.views.counter import ViewCounter


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_view_counter(request: Request) -> ViewCounter:
    return request.app.state.view_counter


def get_dashboard_cache(request: Request) -> StatsCache:
    return request.app.state.dashboard_cache


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory
