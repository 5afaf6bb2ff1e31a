"""
Health checks
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from backend.api.dependencies import get_services
from backend.api.services.weather_factory import WeatherServices
from backend.core.resilience import CircuitState

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health() -> Dict[str, Any]:
    """Liveness."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/detailed")
async def health_detailed(
    services: WeatherServices = Depends(get_services),
) -> Dict[str, Any]:
    """
    Dependency status: Redis, database and the provider circuit breaker.

    An OPEN circuit reports "degraded": forecasts are still served from
    cache or fallback data.
    """
    redis_ok = await services.cache.fast.ping()

    try:
        async with services.session_maker() as session:
            await session.execute(text("SELECT 1"))
        database_ok = True
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"⚠️ Database health check failed: {e}")
        database_ok = False

    breaker = services.circuit_breaker.get_state()
    healthy = redis_ok and database_ok and breaker.state is CircuitState.CLOSED

    return {
        "status": "ok" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {
            "redis": "ok" if redis_ok else "unavailable",
            "database": "ok" if database_ok else "unavailable",
            "weather_provider": {
                "circuit": breaker.state.value,
                "failures": breaker.failures,
            },
        },
    }
