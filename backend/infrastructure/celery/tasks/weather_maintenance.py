"""
Tarefas Celery de manutenção do cache de previsão e dos alertas agrícolas.

Cada tarefa roda em seu próprio event loop (`asyncio.run`), com engine e
cliente Redis próprios, fechados ao final.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from loguru import logger

from backend.api.services.weather_factory import (
    WeatherServiceFactory,
    WeatherServices,
)
from backend.core.errors import AppError
from backend.database.connection import (
    create_standalone_engine,
    make_session_maker,
)
from backend.infrastructure.celery.celery_config import celery_app
from config.settings.app_config import get_settings


@asynccontextmanager
async def task_services() -> AsyncIterator[WeatherServices]:
    settings = get_settings()
    engine = create_standalone_engine()
    redis = WeatherServiceFactory.create_redis(settings)
    services = WeatherServiceFactory.create_services(
        settings, redis, make_session_maker(engine)
    )
    try:
        yield services
    finally:
        await WeatherServiceFactory.close(services, engine)


async def _purge_expired() -> Dict[str, int]:
    async with task_services() as services:
        cache_rows = await services.cache.durable.purge_expired()
        alert_rows = await services.alert_service.purge_expired_alerts()
    return {"cache_entries": cache_rows, "alerts": alert_rows}


async def _generate_alerts_for_all() -> Dict[str, Any]:
    created = 0
    failed = []
    async with task_services() as services:
        user_ids = await services.alert_service.users_with_location()
        for user_id in user_ids:
            try:
                alerts = await services.alert_service.generate_farming_alerts(
                    user_id
                )
            except AppError as e:
                logger.error(f"❌ Alert generation failed for user {user_id}: {e}")
                failed.append(user_id)
                continue
            created += len(alerts)
    return {"users": len(user_ids), "alerts_created": created, "failed": failed}


@celery_app.task(name="weather.purge_expired_cache")
def purge_expired_weather_cache() -> Dict[str, int]:
    """
    Remove entradas expiradas do cache durável e alertas vencidos.

    O Redis expira sozinho (TTL); o PostgreSQL não, daí esta tarefa.
    Executada a cada 15 minutos pelo Celery Beat.
    """
    result = asyncio.run(_purge_expired())
    logger.info(
        f"✅ Purge concluído: {result['cache_entries']} cache, "
        f"{result['alerts']} alertas"
    )
    return result


@celery_app.task(name="weather.generate_alerts_for_all")
def generate_farming_alerts_for_all() -> Dict[str, Any]:
    """Gera alertas para todo agricultor com localização cadastrada."""
    result = asyncio.run(_generate_alerts_for_all())
    logger.info(
        f"✅ Alertas gerados: {result['alerts_created']} "
        f"para {result['users']} agricultores"
    )
    return result
