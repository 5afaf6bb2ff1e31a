"""
Weather Routes
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from loguru import logger

from backend.api.dependencies import get_alert_service, get_weather_service
from backend.api.services.farming_alerts_service import FarmingAlertService
from backend.api.services.geographic_utils import GeographicUtils
from backend.api.services.weather_forecast_service import WeatherForecastService
from backend.core.errors import UserLocationNotFoundError
from backend.core.schemas import GeoLocation

router = APIRouter(prefix="/weather", tags=["Weather"])


def envelope(data: Any) -> Dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _location(lat: float, lon: float) -> GeoLocation:
    GeographicUtils.validate_coordinates(lat, lon)
    return GeoLocation(latitude=lat, longitude=lon)


# ============================================================================
# FORECAST
# ============================================================================


@router.get("/forecast/user")
async def get_user_forecast(
    user_id: int = Query(..., ge=1, description="Farmer id"),
    weather_service: WeatherForecastService = Depends(get_weather_service),
    alert_service: FarmingAlertService = Depends(get_alert_service),
) -> Dict[str, Any]:
    """
    Forecast for the farmer's stored location.

    Returns 400 USER_LOCATION_NOT_FOUND when the farmer has no location.
    """
    location = await alert_service.get_user_location(user_id)
    if location is None:
        raise UserLocationNotFoundError(user_id)

    result = await weather_service.get_forecast(location)
    return envelope(result.model_dump(mode="json"))


@router.get("/forecast/{lat}/{lon}")
async def get_forecast(
    lat: float,
    lon: float,
    weather_service: WeatherForecastService = Depends(get_weather_service),
) -> Dict[str, Any]:
    """
    ✅ Forecast + farming advisories for coordinates.

    Always answers with a forecast-shaped object: live, cached, stale
    (`is_stale`) or static (`is_fallback`).
    """
    result = await weather_service.get_forecast(_location(lat, lon))
    if result.is_fallback or result.is_stale:
        logger.info(
            f"Degraded forecast served for ({lat}, {lon}) | "
            f"reason={result.degradation_reason}"
        )
    return envelope(result.model_dump(mode="json"))


@router.delete("/cache/{lat}/{lon}")
async def invalidate_cache(
    lat: float,
    lon: float,
    weather_service: WeatherForecastService = Depends(get_weather_service),
) -> Dict[str, Any]:
    """Drop the cached forecast for coordinates (both tiers)."""
    await weather_service.invalidate_cache(_location(lat, lon))
    return envelope({"message": "Weather cache cleared successfully"})


# ============================================================================
# ALERTS
# ============================================================================


@router.get("/alerts")
async def get_alerts(
    user_id: int = Query(..., ge=1, description="Farmer id"),
    alert_service: FarmingAlertService = Depends(get_alert_service),
) -> Dict[str, Any]:
    """Active farming alerts for a farmer, newest first."""
    alerts = await alert_service.get_user_alerts(user_id)
    return envelope([alert.model_dump(mode="json") for alert in alerts])


@router.post("/alerts/generate")
async def generate_alerts(
    user_id: int = Query(..., ge=1, description="Farmer id"),
    alert_service: FarmingAlertService = Depends(get_alert_service),
) -> Dict[str, Any]:
    """Derive new alerts from the farmer's forecast and store them."""
    alerts = await alert_service.generate_farming_alerts(user_id)
    return envelope(
        {
            "alerts": [alert.model_dump(mode="json") for alert in alerts],
            "count": len(alerts),
        }
    )
