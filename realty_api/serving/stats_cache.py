"""
Stats Cache

Single-slot, short-TTL memoization in front of an expensive aggregate query.
One instance caches one query family; the application builds the instance at
startup and hands it to the handlers that need it.

Failure policy: the last good payload is preserved when a recompute fails.
Recomputes only happen once that payload has expired, so a failed recompute
propagates ComputeFailure and the next call tries again.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from realty_api.exceptions import ComputeFailure
from realty_api.metrics import STATS_CACHE_REQUESTS, STATS_COMPUTE_TIME

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the wall-clock time (seconds) it was computed"""
    payload: Any
    computed_at: float

    def is_fresh(self, now: float, ttl_ms: float) -> bool:
        return (now - self.computed_at) * 1000.0 < ttl_ms


class MemorySlot:
    """Keeps the entry in process memory"""

    def __init__(self):
        self._entry: Optional[CacheEntry] = None

    async def read(self) -> Optional[CacheEntry]:
        return self._entry

    async def write(self, entry: CacheEntry, ttl_ms: float) -> None:
        self._entry = entry

    async def clear(self) -> None:
        self._entry = None


class RedisSlot:
    """
    Keeps the entry as one JSON document in Redis so every worker process
    shares the same slot.

    The key expires together with the payload. Redis errors degrade to a
    cache miss; the aggregate is then computed directly.
    """

    def __init__(self, client: Redis, key: str):
        self.client = client
        self.key = key

    async def read(self) -> Optional[CacheEntry]:
        try:
            raw = await self.client.get(self.key)
        except RedisError as e:
            logger.warning("Stats cache read failed", key=self.key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            document = json.loads(raw)
            return CacheEntry(payload=document["payload"], computed_at=float(document["computed_at"]))
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Discarding malformed stats cache entry", key=self.key, error=str(e))
            return None

    async def write(self, entry: CacheEntry, ttl_ms: float) -> None:
        document = json.dumps(
            {"payload": entry.payload, "computed_at": entry.computed_at},
            default=str,
        )
        try:
            if ttl_ms > 0:
                await self.client.set(self.key, document, px=int(ttl_ms))
            else:
                await self.client.set(self.key, document)
        except RedisError as e:
            logger.warning("Stats cache write failed", key=self.key, error=str(e))

    async def clear(self) -> None:
        try:
            await self.client.delete(self.key)
        except RedisError as e:
            logger.warning("Stats cache clear failed", key=self.key, error=str(e))


class StatsCache:
    """
    Single-slot cache with a freshness window.

    Example:
        cache = StatsCache("dashboard_stats", ttl_ms=4000)
        stats = await cache.get_or_compute(lambda: compute_dashboard_stats(factory))

    Racing callers that both find the slot stale may both run the compute
    function; the last one to finish replaces the slot.
    """

    def __init__(
        self,
        name: str,
        ttl_ms: float,
        slot: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.ttl_ms = ttl_ms
        self.slot = slot or MemorySlot()
        self._clock = clock
        # Held only while reading or replacing the slot, never during compute
        self._lock = asyncio.Lock()

    async def peek(self) -> Optional[CacheEntry]:
        """Current entry, fresh or not"""
        async with self._lock:
            return await self.slot.read()

    async def get_or_compute(
        self,
        compute_fn: Callable[[], Awaitable[Any]],
        ttl_ms: Optional[float] = None,
        now: Optional[float] = None,
    ) -> Any:
        """
        Return the cached payload while fresh, otherwise compute and store it.

        Args:
            compute_fn: Coroutine function producing the payload
            ttl_ms: Freshness window, defaults to the instance TTL
            now: Current time in seconds, defaults to the instance clock

        Raises:
            ComputeFailure: compute_fn raised; the slot is left unchanged
        """
        ttl_ms = self.ttl_ms if ttl_ms is None else ttl_ms
        now = self._clock() if now is None else now

        async with self._lock:
            entry = await self.slot.read()

        if entry is not None and entry.is_fresh(now, ttl_ms):
            STATS_CACHE_REQUESTS.labels(cache=self.name, result="hit").inc()
            logger.debug("Serving stats from cache", cache=self.name)
            return entry.payload

        logger.debug("Computing fresh stats", cache=self.name)
        STATS_CACHE_REQUESTS.labels(cache=self.name, result="miss").inc()
        try:
            with STATS_COMPUTE_TIME.labels(cache=self.name).time():
                payload = await compute_fn()
        except Exception as e:
            STATS_CACHE_REQUESTS.labels(cache=self.name, result="error").inc()
            logger.error(
                "Stats computation failed",
                cache=self.name,
                error=str(e),
                error_type=type(e).__name__,
                has_previous=entry is not None,
            )
            raise ComputeFailure(f"Failed to compute {self.name}") from e

        async with self._lock:
            await self.slot.write(CacheEntry(payload=payload, computed_at=now), ttl_ms)

        return payload

    async def invalidate(self) -> None:
        """Empty the slot"""
        async with self._lock:
            await self.slot.clear()
