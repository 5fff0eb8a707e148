"""
API Routes Module
"""
from .health import router as health_router
from .property_views import router as property_views_router
from .dashboard import router as dashboard_router

__all__ = [
    "health_router",
    "property_views_router",
    "dashboard_router",
]
