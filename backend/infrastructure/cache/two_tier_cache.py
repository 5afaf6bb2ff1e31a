"""
Two-tier forecast cache: Redis (fast) in front of the durable store.

Read path:  Redis -> database -> (database hit) repopulate Redis -> return
Write path: Redis (fast TTL) + database (expires_at of the result)
Invalidate: both tiers

A tier that is unreachable is logged and skipped; nothing here raises for
backend failures.
"""

from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from backend.api.middleware.prometheus_metrics import (
    CACHE_ERRORS,
    CACHE_HITS,
    CACHE_MISSES,
)
from backend.core.errors import DatabaseError
from backend.core.schemas import WeatherForecastResult
from backend.database.weather_cache_store import WeatherCacheStore
from backend.infrastructure.cache.redis_weather_cache import RedisWeatherCache

DURABLE_TIER = "database"


class TwoTierWeatherCache:
    """
    Args:
        fast: Redis tier
        durable: Database tier
        fast_ttl: Redis TTL in seconds
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        fast: RedisWeatherCache,
        durable: WeatherCacheStore,
        fast_ttl: int = 3600,
        clock: Callable[[], datetime] | None = None,
    ):
        self.fast = fast
        self.durable = durable
        self.fast_ttl = fast_ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _repopulate_ttl(self, result: WeatherForecastResult) -> int:
        remaining = (result.expires_at - self._clock()).total_seconds()
        return max(1, int(min(self.fast_ttl, remaining)))

    async def get(self, location_key: str) -> WeatherForecastResult | None:
        cached = await self.fast.get(location_key)
        if cached is not None:
            return cached

        try:
            stored = await self.durable.get(location_key)
        except DatabaseError as e:
            CACHE_ERRORS.labels(tier=DURABLE_TIER, operation="get").inc()
            logger.warning(f"⚠️ Durable cache read failed ({location_key}): {e}")
            return None

        if stored is None:
            CACHE_MISSES.labels(tier=DURABLE_TIER).inc()
            return None

        CACHE_HITS.labels(tier=DURABLE_TIER).inc()
        logger.debug(f"✅ Cache HIT (database): {location_key}, refilling Redis")
        await self.fast.set(
            location_key, stored, ttl=self._repopulate_ttl(stored)
        )
        return stored

    async def set(
        self, location_key: str, result: WeatherForecastResult
    ) -> None:
        await self.fast.set(location_key, result, ttl=self.fast_ttl)
        try:
            await self.durable.upsert(location_key, result)
        except DatabaseError as e:
            CACHE_ERRORS.labels(tier=DURABLE_TIER, operation="set").inc()
            logger.warning(
                f"⚠️ Durable cache write skipped ({location_key}): {e}"
            )

    async def invalidate(self, location_key: str) -> None:
        await self.fast.delete(location_key)
        try:
            await self.durable.delete(location_key)
        except DatabaseError as e:
            CACHE_ERRORS.labels(tier=DURABLE_TIER, operation="delete").inc()
            logger.warning(
                f"⚠️ Durable cache delete skipped ({location_key}): {e}"
            )
        logger.info(f"🗑️ Weather cache invalidated: {location_key}")
