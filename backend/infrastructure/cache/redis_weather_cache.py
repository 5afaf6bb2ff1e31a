"""
Redis fast tier for forecast results.

Keys: "{prefix}:{location_key}" (e.g. "weather:28.6139,77.2090"), values are
`WeatherForecastResult` JSON. Redis being down is never an error for the
caller: reads degrade to a miss, writes and deletes are skipped.
"""

from loguru import logger
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from backend.api.middleware.prometheus_metrics import (
    CACHE_ERRORS,
    CACHE_HITS,
    CACHE_MISSES,
)
from backend.core.schemas import WeatherForecastResult

TIER = "redis"


class RedisWeatherCache:
    """
    Fast cache tier.

    Args:
        redis: redis.asyncio client (decode_responses=True)
        prefix: Key namespace
        ttl: Default TTL in seconds
    """

    def __init__(self, redis: Redis, prefix: str = "weather", ttl: int = 3600):
        self.redis = redis
        self.prefix = prefix
        self.ttl = ttl

    def _key(self, location_key: str) -> str:
        return f"{self.prefix}:{location_key}"

    async def get(self, location_key: str) -> WeatherForecastResult | None:
        key = self._key(location_key)
        try:
            raw = await self.redis.get(key)
        except (RedisError, OSError) as e:
            CACHE_ERRORS.labels(tier=TIER, operation="get").inc()
            logger.warning(f"⚠️ Redis GET failed for {key}: {e}")
            return None

        if raw is None:
            CACHE_MISSES.labels(tier=TIER).inc()
            logger.debug(f"⚠️ Cache MISS (redis): {key}")
            return None

        try:
            result = WeatherForecastResult.model_validate_json(raw)
        except ValidationError as e:
            CACHE_ERRORS.labels(tier=TIER, operation="decode").inc()
            logger.warning(f"⚠️ Discarding undecodable cache entry {key}: {e}")
            return None

        CACHE_HITS.labels(tier=TIER).inc()
        logger.debug(f"✅ Cache HIT (redis): {key}")
        return result

    async def set(
        self,
        location_key: str,
        result: WeatherForecastResult,
        ttl: int | None = None,
    ) -> bool:
        key = self._key(location_key)
        ttl = max(1, int(ttl if ttl is not None else self.ttl))
        try:
            await self.redis.setex(key, ttl, result.model_dump_json())
        except (RedisError, OSError) as e:
            CACHE_ERRORS.labels(tier=TIER, operation="set").inc()
            logger.warning(f"⚠️ Redis SETEX failed for {key}: {e}")
            return False
        logger.debug(f"💾 Cached {key} with TTL {ttl}s")
        return True

    async def delete(self, location_key: str) -> bool:
        key = self._key(location_key)
        try:
            await self.redis.delete(key)
        except (RedisError, OSError) as e:
            CACHE_ERRORS.labels(tier=TIER, operation="delete").inc()
            logger.warning(f"⚠️ Redis DELETE failed for {key}: {e}")
            return False
        return True

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except (RedisError, OSError) as e:
            logger.warning(f"⚠️ Redis PING failed: {e}")
            return False
