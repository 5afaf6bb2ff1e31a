"""
Testes do cache em duas camadas
- RedisWeatherCache (camada rápida)
- WeatherCacheStore (camada durável, SQLite em memória)
- TwoTierWeatherCache (leitura, repopulação, invalidação)
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from backend.core.errors import DatabaseError
from backend.database.weather_cache_store import WeatherCacheStore
from backend.infrastructure.cache.redis_weather_cache import RedisWeatherCache
from backend.infrastructure.cache.two_tier_cache import TwoTierWeatherCache

KEY = "28.6139,77.2090"


# ============================================================================
# REDIS TIER
# ============================================================================


class TestRedisWeatherCache:
    async def test_set_then_get(self, fake_redis, delhi, make_result):
        cache = RedisWeatherCache(fake_redis, ttl=3600)
        result = make_result(delhi)

        assert await cache.set(KEY, result)

        assert fake_redis.ttls[f"weather:{KEY}"] == 3600
        assert await cache.get(KEY) == result

    async def test_miss(self, mock_redis_client):
        cache = RedisWeatherCache(mock_redis_client)

        assert await cache.get(KEY) is None
        mock_redis_client.get.assert_awaited_once_with(f"weather:{KEY}")

    async def test_redis_down_is_a_miss(self, fake_redis, delhi, make_result):
        cache = RedisWeatherCache(fake_redis)
        fake_redis.fail = True

        assert await cache.get(KEY) is None
        assert await cache.set(KEY, make_result(delhi)) is False
        assert await cache.delete(KEY) is False
        assert await cache.ping() is False

    async def test_undecodable_entry_is_a_miss(self, fake_redis):
        fake_redis.store[f"weather:{KEY}"] = '{"not": "a forecast"}'

        assert await RedisWeatherCache(fake_redis).get(KEY) is None

    async def test_ttl_never_below_one_second(
        self, mock_redis_client, delhi, make_result
    ):
        cache = RedisWeatherCache(mock_redis_client)

        await cache.set(KEY, make_result(delhi), ttl=0)

        assert mock_redis_client.setex.await_args.args[1] == 1


# ============================================================================
# DURABLE TIER
# ============================================================================


class TestWeatherCacheStore:
    async def test_upsert_and_get(self, durable_store, delhi, make_result):
        result = make_result(delhi)

        await durable_store.upsert(KEY, result)

        assert await durable_store.get(KEY) == result

    async def test_upsert_replaces_existing_row(
        self, durable_store, delhi, make_result, make_conditions
    ):
        await durable_store.upsert(KEY, make_result(delhi))
        newer = make_result(delhi, current=make_conditions(temperature=35))

        await durable_store.upsert(KEY, newer)

        stored = await durable_store.get(KEY)
        assert stored.current.temperature == 35

    async def test_get_unknown_key(self, durable_store):
        assert await durable_store.get("0.0000,0.0000") is None

    async def test_delete(self, durable_store, delhi, make_result):
        await durable_store.upsert(KEY, make_result(delhi))

        assert await durable_store.delete(KEY) is True
        assert await durable_store.delete(KEY) is False
        assert await durable_store.get(KEY) is None

    async def test_purge_expired(self, durable_store, delhi, make_result, clock):
        await durable_store.upsert(KEY, make_result(delhi, retention=3600))
        other = make_result(delhi.model_copy(update={"latitude": 10.0}))
        await durable_store.upsert("10.0000,77.2090", other)

        removed = await durable_store.purge_expired(
            now=clock() + timedelta(hours=2)
        )

        assert removed == 1
        assert await durable_store.get(KEY) is None
        assert await durable_store.get("10.0000,77.2090") is not None

    async def test_unreachable_database_raises_database_error(
        self, unreachable_session_maker, delhi, make_result
    ):
        store = WeatherCacheStore(unreachable_session_maker)

        with pytest.raises(DatabaseError):
            await store.get(KEY)
        with pytest.raises(DatabaseError):
            await store.upsert(KEY, make_result(delhi))
        with pytest.raises(DatabaseError):
            await store.delete(KEY)
        with pytest.raises(DatabaseError):
            await store.purge_expired()


# ============================================================================
# TWO TIERS
# ============================================================================


@pytest.fixture
def two_tier(fake_redis, durable_store, clock):
    return TwoTierWeatherCache(
        RedisWeatherCache(fake_redis), durable_store, fast_ttl=3600, clock=clock
    )


class TestTwoTierWeatherCache:
    async def test_set_writes_both_tiers(
        self, two_tier, fake_redis, durable_store, delhi, make_result
    ):
        result = make_result(delhi)

        await two_tier.set(KEY, result)

        assert f"weather:{KEY}" in fake_redis.store
        assert await durable_store.get(KEY) == result

    async def test_durable_hit_repopulates_redis(
        self, two_tier, fake_redis, durable_store, delhi, make_result, clock
    ):
        await durable_store.upsert(KEY, make_result(delhi, retention=21600))
        clock.advance(2 * 3600)

        assert await two_tier.get(KEY) is not None

        # 4h of lifetime left, fast_ttl caps the Redis TTL
        assert fake_redis.ttls[f"weather:{KEY}"] == 3600
        assert f"weather:{KEY}" in fake_redis.store

    async def test_repopulation_ttl_uses_remaining_lifetime(
        self, two_tier, fake_redis, durable_store, delhi, make_result, clock
    ):
        await durable_store.upsert(KEY, make_result(delhi, retention=21600))
        clock.advance(21600 - 600)

        await two_tier.get(KEY)

        assert fake_redis.ttls[f"weather:{KEY}"] == 600

    async def test_redis_down_falls_through_to_database(
        self, two_tier, fake_redis, durable_store, delhi, make_result
    ):
        await durable_store.upsert(KEY, make_result(delhi))
        fake_redis.fail = True

        assert await two_tier.get(KEY) is not None

    async def test_database_errors_are_absorbed(
        self, fake_redis, delhi, make_result
    ):
        durable = AsyncMock()
        durable.get.side_effect = DatabaseError("db down")
        durable.upsert.side_effect = DatabaseError("db down")
        durable.delete.side_effect = DatabaseError("db down")
        cache = TwoTierWeatherCache(RedisWeatherCache(fake_redis), durable)

        assert await cache.get(KEY) is None
        await cache.set(KEY, make_result(delhi))
        await cache.invalidate(KEY)

    async def test_invalidate_clears_both_tiers(
        self, two_tier, fake_redis, durable_store, delhi, make_result
    ):
        await two_tier.set(KEY, make_result(delhi))

        await two_tier.invalidate(KEY)

        assert fake_redis.store == {}
        assert await durable_store.get(KEY) is None
        assert await two_tier.get(KEY) is None

    async def test_unreachable_database_degrades_to_redis_only(
        self, fake_redis, unreachable_session_maker, delhi, make_result, clock
    ):
        cache = TwoTierWeatherCache(
            RedisWeatherCache(fake_redis),
            WeatherCacheStore(unreachable_session_maker),
            clock=clock,
        )

        assert await cache.get(KEY) is None
        await cache.set(KEY, make_result(delhi))
        assert await cache.get(KEY) is not None

        await cache.invalidate(KEY)
        assert fake_redis.store == {}
