"""
Weather forecast orchestrator.

Pipeline for one request:
    1. location key from coordinates (4 decimals)
    2. two-tier cache read; fresh entries (age < cache_duration) return
       immediately
    3. provider fetch through the circuit breaker, under a deadline; on
       failure or open circuit the fallback serves the stale cache entry
       (flagged is_stale) or static data (flagged is_fallback)
    4. live data -> derive advisories -> write both cache tiers
    5. anything unexpected -> last cache read or static data

`get_forecast` always returns a forecast-shaped result for valid
coordinates. Degraded results carry the error code that caused them in
`degradation_reason`; authentication and rate-limit failures are logged at
ERROR level and counted in `weather_provider_errors_total` because they need
operator action.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from loguru import logger

from backend.api.middleware.prometheus_metrics import (
    FORECAST_RESULTS,
    PROVIDER_ERRORS,
)
from backend.api.services.geographic_utils import make_location_key
from backend.core.advisory import derive_advisories
from backend.core.errors import (
    AppError,
    CircuitOpenError,
    ExternalServiceError,
    ProviderAuthenticationError,
    ProviderRateLimitError,
)
from backend.core.resilience import (
    CircuitBreaker,
    get_weather_fallback_data,
    with_timeout,
)
from backend.core.schemas import (
    GeoLocation,
    ProviderWeather,
    WeatherForecastResult,
)
from backend.infrastructure.cache.two_tier_cache import TwoTierWeatherCache

STALE_WARNING = "Weather data may be outdated due to service issues"


class WeatherProvider(Protocol):
    async def fetch_weather(self, location: GeoLocation) -> ProviderWeather:
        ...


class WeatherForecastService:
    """
    Args:
        provider: Weather data source (OpenWeatherClient in production)
        cache: Two-tier cache
        circuit_breaker: Breaker dedicated to `provider`
        cache_duration: Seconds a cached forecast counts as fresh
        stale_retention: Seconds a forecast is kept for stale fallback
        fetch_timeout: Deadline for one provider fetch (seconds)
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        provider: WeatherProvider,
        cache: TwoTierWeatherCache,
        circuit_breaker: CircuitBreaker,
        cache_duration: int = 3600,
        stale_retention: int = 21600,
        fetch_timeout: float = 20.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.provider = provider
        self.cache = cache
        self.circuit_breaker = circuit_breaker
        self.cache_duration = cache_duration
        self.stale_retention = stale_retention
        self.fetch_timeout = fetch_timeout
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def is_fresh(self, result: WeatherForecastResult, now: datetime) -> bool:
        """Fresh while age < cache_duration; age == cache_duration is stale."""
        age = (now - result.cached_at).total_seconds()
        return age < self.cache_duration

    async def get_forecast(self, location: GeoLocation) -> WeatherForecastResult:
        """
        Forecast for a location, degrading instead of failing.

        Args:
            location: Validated coordinates

        Returns:
            Live, cached, stale (is_stale) or static (is_fallback) result
        """
        location_key = make_location_key(location.latitude, location.longitude)
        cached: WeatherForecastResult | None = None

        try:
            cached = await self.cache.get(location_key)
            if cached is not None and self.is_fresh(cached, self._clock()):
                FORECAST_RESULTS.labels(source="fresh_cache").inc()
                logger.debug(f"✅ Fresh forecast from cache: {location_key}")
                return cached

            async def fallback(exc: Exception) -> WeatherForecastResult:
                return self._degraded(location, cached, exc)

            result = await self.circuit_breaker.execute(
                lambda: self._fetch_live(location, location_key),
                fallback=fallback,
            )
            if result.is_fallback or result.is_stale:
                return result

            await self.cache.set(location_key, result)
            FORECAST_RESULTS.labels(source="live").inc()
            return result

        except Exception as e:
            logger.opt(exception=e).error(
                f"❌ Forecast pipeline failed for {location_key}: {e}"
            )
            if cached is None:
                cached = await self._last_resort_read(location_key)
            return self._degraded(location, cached, e)

    async def _fetch_live(
        self, location: GeoLocation, location_key: str
    ) -> WeatherForecastResult:
        weather = await with_timeout(
            lambda: self.provider.fetch_weather(location),
            self.fetch_timeout,
            "Weather API request timed out",
        )
        now = self._clock()
        derived = derive_advisories(weather.current, weather.forecast, now.date())
        return WeatherForecastResult(
            location_key=location_key,
            location=location,
            current=weather.current,
            forecast=weather.forecast,
            farming_recommendations=derived.farming_recommendations,
            agricultural_advisory=derived.agricultural_advisory,
            crop_planning_advice=derived.crop_planning_advice,
            cached_at=now,
            expires_at=now + timedelta(seconds=self.stale_retention),
        )

    async def _last_resort_read(
        self, location_key: str
    ) -> WeatherForecastResult | None:
        try:
            return await self.cache.get(location_key)
        except Exception as e:
            logger.warning(f"⚠️ Last-resort cache read failed: {e}")
            return None

    def _degraded(
        self,
        location: GeoLocation,
        cached: WeatherForecastResult | None,
        error: Exception,
    ) -> WeatherForecastResult:
        reason = error.code if isinstance(error, AppError) else "INTERNAL_ERROR"
        self._report_provider_error(error, reason)

        if cached is not None:
            FORECAST_RESULTS.labels(source="stale_cache").inc()
            recommendations = list(cached.farming_recommendations)
            if STALE_WARNING not in recommendations:
                recommendations.append(STALE_WARNING)
            logger.warning(
                f"⚠️ Serving stale forecast for {cached.location_key} "
                f"(cached_at={cached.cached_at.isoformat()}) | reason={reason}"
            )
            return cached.model_copy(
                update={
                    "farming_recommendations": recommendations,
                    "is_stale": True,
                    "degradation_reason": reason,
                }
            )

        FORECAST_RESULTS.labels(source="fallback").inc()
        logger.warning(
            f"⚠️ Serving static fallback for "
            f"({location.latitude}, {location.longitude}) | reason={reason}"
        )
        return get_weather_fallback_data(
            location, now=self._clock(), reason=reason
        )

    @staticmethod
    def _report_provider_error(error: Exception, reason: str) -> None:
        # Short-circuits and failures outside the provider call are not
        # provider errors
        if isinstance(error, CircuitOpenError) or not isinstance(
            error, ExternalServiceError
        ):
            return
        PROVIDER_ERRORS.labels(code=reason).inc()
        if isinstance(error, (ProviderAuthenticationError, ProviderRateLimitError)):
            logger.error(
                f"🚨 Weather provider needs operator attention | code={reason} "
                f"| {error}"
            )
        else:
            logger.warning(f"⚠️ Weather provider failure | code={reason} | {error}")

    async def invalidate_cache(self, location: GeoLocation) -> None:
        """Best effort: cache tiers absorb their own failures."""
        location_key = make_location_key(location.latitude, location.longitude)
        await self.cache.invalidate(location_key)

    def get_circuit_state(self) -> dict:
        snapshot = self.circuit_breaker.get_state()
        return {
            "name": snapshot.name,
            "state": snapshot.state.value,
            "failures": snapshot.failures,
        }
