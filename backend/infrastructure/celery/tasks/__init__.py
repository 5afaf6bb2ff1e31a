"""
Celery tasks para FarmCast.

Tasks disponíveis:
- weather_maintenance: Purga do cache durável e geração periódica de alertas
"""

from .weather_maintenance import (
    generate_farming_alerts_for_all,
    purge_expired_weather_cache,
)

__all__ = [
    "generate_farming_alerts_for_all",
    "purge_expired_weather_cache",
]
