# backend/api/services/weather_factory.py
"""
Factory centralizada para os serviços de previsão com injeção de
dependências.

Responsabilidades principais:
- Criar UM circuit breaker por dependência externa (OpenWeather)
- Montar o cache em duas camadas (Redis + banco) sobre conexões compartilhadas
- Injetar provider, cache e breaker no orquestrador
- Fornecer cleanup seguro e centralizado (FastAPI lifespan, Celery)
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backend.api.services.farming_alerts_service import FarmingAlertService
from backend.api.services.openweather.openweather_client import (
    OpenWeatherClient,
    OpenWeatherConfig,
)
from backend.api.services.weather_forecast_service import WeatherForecastService
from backend.core.resilience import CircuitBreaker
from backend.database.weather_cache_store import WeatherCacheStore
from backend.infrastructure.cache.redis_weather_cache import RedisWeatherCache
from backend.infrastructure.cache.two_tier_cache import TwoTierWeatherCache
from config.settings.app_config import AppSettings


@dataclass
class WeatherServices:
    """Everything one process needs to serve forecasts."""

    provider: OpenWeatherClient
    circuit_breaker: CircuitBreaker
    cache: TwoTierWeatherCache
    forecast_service: WeatherForecastService
    alert_service: FarmingAlertService
    redis: Redis
    session_maker: async_sessionmaker[AsyncSession]


class WeatherServiceFactory:
    """
    Factory oficial para os serviços de previsão do FarmCast.

    Uso:
        services = WeatherServiceFactory.create_services(
            settings, redis_client, session_maker
        )
        result = await services.forecast_service.get_forecast(location)
        await WeatherServiceFactory.close(services)
    """

    @staticmethod
    def create_redis(settings: AppSettings) -> Redis:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        logger.debug("Cliente Redis criado (pool compartilhado)")
        return client

    @staticmethod
    def create_provider(settings: AppSettings) -> OpenWeatherClient:
        config = OpenWeatherConfig(
            base_url=settings.WEATHER_API_URL,
            api_key=settings.WEATHER_API_KEY,
            timeout=settings.WEATHER_HTTP_TIMEOUT,
            call_timeout=settings.WEATHER_CALL_TIMEOUT,
        )
        return OpenWeatherClient(config)

    @staticmethod
    def create_circuit_breaker(settings: AppSettings) -> CircuitBreaker:
        breaker = CircuitBreaker(
            "openweather",
            failure_threshold=settings.CIRCUIT_BREAKER_THRESHOLD,
            recovery_timeout=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
        )
        logger.debug(
            f"CircuitBreaker 'openweather' criado | "
            f"threshold={breaker.failure_threshold} | "
            f"recovery={breaker.recovery_timeout}s"
        )
        return breaker

    @staticmethod
    def create_cache(
        settings: AppSettings,
        redis: Redis,
        session_maker: async_sessionmaker[AsyncSession],
    ) -> TwoTierWeatherCache:
        fast = RedisWeatherCache(
            redis, prefix="weather", ttl=settings.WEATHER_FAST_CACHE_TTL
        )
        durable = WeatherCacheStore(session_maker)
        return TwoTierWeatherCache(
            fast, durable, fast_ttl=settings.WEATHER_FAST_CACHE_TTL
        )

    @classmethod
    def create_services(
        cls,
        settings: AppSettings,
        redis: Redis,
        session_maker: async_sessionmaker[AsyncSession],
    ) -> WeatherServices:
        provider = cls.create_provider(settings)
        breaker = cls.create_circuit_breaker(settings)
        cache = cls.create_cache(settings, redis, session_maker)
        forecast_service = WeatherForecastService(
            provider=provider,
            cache=cache,
            circuit_breaker=breaker,
            cache_duration=settings.WEATHER_CACHE_DURATION,
            stale_retention=settings.WEATHER_STALE_RETENTION,
            # two provider calls, each under WEATHER_CALL_TIMEOUT
            fetch_timeout=settings.WEATHER_CALL_TIMEOUT * 2,
        )
        alert_service = FarmingAlertService(
            forecast_service,
            session_maker,
            alert_duration=settings.ALERT_DURATION,
        )
        logger.info("WeatherServices criados (provider + breaker + cache)")
        return WeatherServices(
            provider=provider,
            circuit_breaker=breaker,
            cache=cache,
            forecast_service=forecast_service,
            alert_service=alert_service,
            redis=redis,
            session_maker=session_maker,
        )

    @staticmethod
    async def close(
        services: WeatherServices, engine: AsyncEngine | None = None
    ) -> None:
        """
        Fecha conexões HTTP, Redis e banco.

        Chamado no shutdown da aplicação e ao final de tasks Celery.
        """
        await services.provider.close()
        try:
            await services.redis.aclose()
        except Exception as e:
            logger.error(f"Erro ao fechar Redis: {e}")
        if engine is not None:
            await engine.dispose()
        logger.info("WeatherServiceFactory: cleanup completo")
