"""
Redis Connection Module

Shared Redis client used by the stats cache when
DASHBOARD_STATS_CACHE_BACKEND=redis, and by the health checks.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis, ConnectionPool

from realty_api.config import get_settings
from realty_api.config.settings import RedisSettings

logger = structlog.get_logger(__name__)

# Process-wide Redis connection
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


async def init_redis(redis_settings: Optional[RedisSettings] = None) -> Redis:
    """Initialize Redis connection pool"""
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_settings = redis_settings or get_settings().redis

    _redis_pool = ConnectionPool.from_url(
        redis_settings.get_url(),
        max_connections=redis_settings.max_connections,
        socket_timeout=redis_settings.socket_timeout,
        decode_responses=redis_settings.decode_responses,
    )

    client = Redis(connection_pool=_redis_pool)

    # Test connection
    try:
        await client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error("Redis connection failed", error=str(e))
        await client.aclose()
        await _redis_pool.disconnect()
        _redis_pool = None
        raise

    _redis_client = client
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection pool"""
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None

    logger.info("Redis connection closed")


def get_redis() -> Redis:
    """Get Redis client instance"""
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


def redis_available() -> bool:
    """Whether init_redis() has succeeded in this process"""
    return _redis_client is not None
