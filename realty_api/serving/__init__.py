"""
Serving Module
"""
from .cache import init_redis, close_redis, get_redis
from .stats_cache import StatsCache, MemorySlot, RedisSlot, CacheEntry

__all__ = [
    "init_redis",
    "close_redis",
    "get_redis",
    "StatsCache",
    "MemorySlot",
    "RedisSlot",
    "CacheEntry",
]
