"""
API Module
"""
from .main import create_api_app, attach_services
from .middleware import RequestLoggingMiddleware, RateLimitMiddleware, SecurityHeadersMiddleware

__all__ = [
    "create_api_app",
    "attach_services",
    "RequestLoggingMiddleware",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
