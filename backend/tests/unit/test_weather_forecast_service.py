"""
Unit tests for WeatherForecastService (cache -> breaker -> fallback).

Real cache tiers (in-memory Redis double + SQLite) and a real circuit
breaker; only the provider and the clocks are fakes.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

from prometheus_client import REGISTRY

from backend.api.services.weather_forecast_service import (
    STALE_WARNING,
    WeatherForecastService,
)
from backend.core.errors import (
    ProviderAuthenticationError,
    ProviderUnavailableError,
)
from backend.core.resilience import CircuitBreaker, CircuitState
from backend.core.schemas import ProviderWeather
from backend.database.weather_cache_store import WeatherCacheStore
from backend.infrastructure.cache.redis_weather_cache import RedisWeatherCache
from backend.infrastructure.cache.two_tier_cache import TwoTierWeatherCache

KEY = "28.6139,77.2090"


def _provider_errors(code: str) -> float:
    return (
        REGISTRY.get_sample_value("weather_provider_errors_total", {"code": code})
        or 0.0
    )


class TestLiveForecast:
    async def test_heat_wave_scenario(
        self, weather_stack, delhi, make_conditions, make_forecast
    ):
        """Cache vazio + 42°C: recomendações de estresse térmico"""
        weather_stack.provider.weather = ProviderWeather(
            current=make_conditions(temperature=42),
            forecast=make_forecast(probability=5),
        )

        result = await weather_stack.service.get_forecast(delhi)

        assert not result.is_fallback and not result.is_stale
        assert result.location_key == KEY
        assert any(
            "Increase irrigation frequency" in r
            for r in result.farming_recommendations
        )
        assert "increase irrigation frequency" in (
            result.agricultural_advisory.irrigation.lower()
        )
        assert result.expires_at - result.cached_at == timedelta(seconds=21600)

    async def test_live_result_written_to_both_tiers(
        self, weather_stack, delhi, durable_store
    ):
        await weather_stack.service.get_forecast(delhi)

        assert f"weather:{KEY}" in weather_stack.redis.store
        assert await durable_store.get(KEY) is not None

    async def test_second_call_is_served_from_cache(self, weather_stack, delhi):
        first = await weather_stack.service.get_forecast(delhi)
        second = await weather_stack.service.get_forecast(delhi)

        assert weather_stack.provider.calls == 1
        assert second == first

    async def test_freshness_boundary(self, weather_stack, delhi):
        await weather_stack.service.get_forecast(delhi)

        weather_stack.clock.advance(3599)
        await weather_stack.service.get_forecast(delhi)
        assert weather_stack.provider.calls == 1

        # age == cache duration counts as stale
        weather_stack.clock.advance(1)
        await weather_stack.service.get_forecast(delhi)
        assert weather_stack.provider.calls == 2

    async def test_invalidate_forces_refetch(self, weather_stack, delhi):
        await weather_stack.service.get_forecast(delhi)

        await weather_stack.service.invalidate_cache(delhi)
        await weather_stack.service.get_forecast(delhi)

        assert weather_stack.provider.calls == 2


class TestDegradation:
    async def test_network_error_without_cache_returns_static_data(
        self, weather_stack, delhi
    ):
        weather_stack.provider.error = ProviderUnavailableError()

        result = await weather_stack.service.get_forecast(delhi)

        assert result.is_fallback is True
        assert result.current.temperature == 25
        assert result.farming_recommendations
        assert len(result.forecast) == 3
        assert result.degradation_reason == "WEATHER_SERVICE_UNAVAILABLE"
        # static data is never cached
        assert weather_stack.redis.store == {}

    async def test_stale_cache_preferred_over_static_data(
        self, weather_stack, delhi, make_conditions
    ):
        weather_stack.provider.weather = ProviderWeather(
            current=make_conditions(temperature=31)
        )
        await weather_stack.service.get_forecast(delhi)
        weather_stack.clock.advance(2 * 3600)
        weather_stack.provider.error = ProviderUnavailableError()

        result = await weather_stack.service.get_forecast(delhi)

        assert result.is_stale is True
        assert result.is_fallback is False
        assert result.current.temperature == 31
        assert result.farming_recommendations[-1] == STALE_WARNING

    async def test_stale_warning_added_once(self, weather_stack, delhi):
        await weather_stack.service.get_forecast(delhi)
        weather_stack.clock.advance(3600)
        weather_stack.provider.error = ProviderUnavailableError()

        await weather_stack.service.get_forecast(delhi)
        result = await weather_stack.service.get_forecast(delhi)

        assert result.farming_recommendations.count(STALE_WARNING) == 1

    async def test_timeout_degrades(self, weather_stack, delhi):
        weather_stack.service.fetch_timeout = 0.05
        weather_stack.provider.delay = 1.0

        result = await weather_stack.service.get_forecast(delhi)

        assert result.is_fallback
        assert result.degradation_reason == "TIMEOUT"
        assert weather_stack.breaker.get_state().failures == 1

    async def test_auth_failure_reported(self, weather_stack, delhi):
        weather_stack.provider.error = ProviderAuthenticationError()

        result = await weather_stack.service.get_forecast(delhi)

        assert result.degradation_reason == "WEATHER_API_AUTH_FAILED"

    async def test_unexpected_error_still_returns_forecast(
        self, delhi, provider, monotonic
    ):
        cache = AsyncMock()
        cache.get.side_effect = RuntimeError("cache exploded")
        service = WeatherForecastService(
            provider, cache, CircuitBreaker("t", clock=monotonic)
        )

        before = _provider_errors("INTERNAL_ERROR")

        result = await service.get_forecast(delhi)

        assert result.is_fallback
        assert result.degradation_reason == "INTERNAL_ERROR"
        # Not a provider failure
        assert _provider_errors("INTERNAL_ERROR") == before

    async def test_provider_failures_are_counted(self, weather_stack, delhi):
        weather_stack.provider.error = ProviderUnavailableError()
        before = _provider_errors("WEATHER_SERVICE_UNAVAILABLE")

        await weather_stack.service.get_forecast(delhi)

        assert _provider_errors("WEATHER_SERVICE_UNAVAILABLE") == before + 1

    async def test_database_down_still_serves_live_data(
        self,
        provider,
        fake_redis,
        unreachable_session_maker,
        delhi,
        clock,
        monotonic,
    ):
        cache = TwoTierWeatherCache(
            RedisWeatherCache(fake_redis),
            WeatherCacheStore(unreachable_session_maker),
            clock=clock,
        )
        service = WeatherForecastService(
            provider,
            cache,
            CircuitBreaker("db-down", clock=monotonic),
            clock=clock,
        )

        result = await service.get_forecast(delhi)

        assert provider.calls == 1
        assert not result.is_fallback and result.degradation_reason is None
        assert f"weather:{KEY}" in fake_redis.store

        await service.invalidate_cache(delhi)
        assert fake_redis.store == {}


class TestCircuitBreakerIntegration:
    async def test_circuit_opens_and_skips_provider(self, weather_stack, delhi):
        weather_stack.provider.error = ProviderUnavailableError()
        for _ in range(3):
            await weather_stack.service.get_forecast(delhi)

        assert weather_stack.breaker.state is CircuitState.OPEN

        result = await weather_stack.service.get_forecast(delhi)

        assert weather_stack.provider.calls == 3
        assert result.is_fallback
        assert result.degradation_reason == "CIRCUIT_OPEN"

    async def test_recovers_after_timeout(self, weather_stack, delhi):
        weather_stack.provider.error = ProviderUnavailableError()
        for _ in range(3):
            await weather_stack.service.get_forecast(delhi)

        weather_stack.monotonic.advance(30)
        weather_stack.provider.error = None
        result = await weather_stack.service.get_forecast(delhi)

        assert not result.is_fallback
        assert weather_stack.breaker.state is CircuitState.CLOSED

    async def test_get_circuit_state(self, weather_stack):
        assert weather_stack.service.get_circuit_state() == {
            "name": "openweather",
            "state": "CLOSED",
            "failures": 0,
        }
