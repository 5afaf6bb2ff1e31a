"""
Weather Services Module - FarmCast

Serviços de previsão do tempo e aconselhamento agrícola.

ARCHITECTURE OVERVIEW:
======================

Core Services (Factory Pattern):
├── WeatherServiceFactory       - Factory para criar serviços com DI
├── WeatherForecastService      - Orquestrador: cache -> breaker -> fallback
└── FarmingAlertService         - Alertas agrícolas por agricultor

API Clients:
└── OpenWeather                 - Condições atuais + previsão 3 dias

CACHE STRATEGY:
==============
- Redis (1h) na frente do PostgreSQL (retenção de 6h para fallback)
- Entradas com mais de 1h são "stale": usadas só se o provider falhar
- Purga periódica via Celery beat

ERROR HANDLING:
==============
- Circuit breaker por dependência externa (3 falhas, 30s de recuperação)
- Timeout em toda chamada ao provider
- Degradação: cache fresco -> cache stale -> dados estáticos
- Logging com loguru, métricas Prometheus

Version: 1.0.0
"""

from typing import Any

__all__ = [
    # Core Services
    "WeatherServiceFactory",
    "WeatherForecastService",
    "FarmingAlertService",
    # Clients
    "OpenWeatherClient",
    # Utils
    "GeographicUtils",
    "make_location_key",
]


def __getattr__(name: str) -> Any:
    """
    Lazy loading para evitar dependências circulares.
    """
    import importlib

    # Mapeamento centralizado: (submodule_path, attribute)
    lazy_imports: dict[str, tuple[str, str]] = {
        "WeatherServiceFactory": (".weather_factory", "WeatherServiceFactory"),
        "WeatherForecastService": (
            ".weather_forecast_service",
            "WeatherForecastService",
        ),
        "FarmingAlertService": (
            ".farming_alerts_service",
            "FarmingAlertService",
        ),
        "OpenWeatherClient": (
            ".openweather.openweather_client",
            "OpenWeatherClient",
        ),
        "GeographicUtils": (".geographic_utils", "GeographicUtils"),
        "make_location_key": (".geographic_utils", "make_location_key"),
    }

    if name in lazy_imports:
        module_path, attr_name = lazy_imports[name]
        try:
            module = importlib.import_module(module_path, package=__name__)
            return getattr(module, attr_name)
        except (ImportError, AttributeError) as e:
            raise ImportError(
                f"Falha ao importar '{name}' de '{module_path}': {e}"
            ) from e

    raise AttributeError(f"Módulo '{__name__}' não possui atributo '{name}'")


__version__ = "1.0.0"
__author__ = "FarmCast Development Team"
