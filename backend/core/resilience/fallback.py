"""
Static fallback forecast.

Built from constants and the requested coordinates only (no I/O), so it can
always be produced. Results are flagged `is_fallback=True` and are never
written to the cache tiers.
"""

from datetime import datetime, timedelta, timezone

from backend.api.services.geographic_utils import make_location_key
from backend.core.schemas import (
    AgriculturalAdvisory,
    CurrentConditions,
    DailyForecast,
    GeoLocation,
    Precipitation,
    WeatherForecastResult,
)

FALLBACK_DAYS = 3

FALLBACK_RECOMMENDATIONS = (
    "Weather data is temporarily unavailable",
    "Please check local weather conditions",
    "Consult local agricultural experts for current advice",
)

FALLBACK_ADVISORY = AgriculturalAdvisory(
    irrigation="Weather data unavailable. Follow standard irrigation practices.",
    pest_control=(
        "Weather data unavailable. Monitor conditions before application."
    ),
    harvesting="Weather data unavailable. Check crop maturity manually.",
    planting="Weather data unavailable. Follow seasonal guidelines.",
    general_advice=(
        "Weather service temporarily unavailable. Use local observations."
    ),
    soil_conditions="Monitor soil moisture manually.",
    crop_protection="Follow standard crop protection measures.",
)

FALLBACK_CURRENT = CurrentConditions(
    temperature=25,
    humidity=60,
    pressure=1013,
    wind_speed=10,
    wind_direction=180,
    description="Data temporarily unavailable",
    icon="unknown",
    visibility=10,
    feels_like=25,
)

_FALLBACK_DAY_WEATHER = CurrentConditions(
    temperature=25,
    humidity=65,
    pressure=1013,
    wind_speed=8,
    wind_direction=180,
    description="Forecast temporarily unavailable",
    icon="unknown",
    visibility=10,
    feels_like=25,
)


def get_weather_fallback_data(
    location: GeoLocation,
    now: datetime | None = None,
    reason: str | None = None,
) -> WeatherForecastResult:
    """
    Build the static placeholder forecast for a location.

    Args:
        location: Requested coordinates
        now: Reference time (defaults to current UTC time)
        reason: Error code that caused the degradation

    Returns:
        WeatherForecastResult with is_fallback=True
    """
    now = now or datetime.now(timezone.utc)
    forecast = [
        DailyForecast(
            date=(now + timedelta(days=offset)).date(),
            weather=_FALLBACK_DAY_WEATHER,
            precipitation=Precipitation(probability=0, amount=0),
            min_temp=20,
            max_temp=30,
        )
        for offset in range(1, FALLBACK_DAYS + 1)
    ]

    return WeatherForecastResult(
        location_key=make_location_key(location.latitude, location.longitude),
        location=location,
        current=FALLBACK_CURRENT,
        forecast=forecast,
        farming_recommendations=list(FALLBACK_RECOMMENDATIONS),
        agricultural_advisory=FALLBACK_ADVISORY,
        crop_planning_advice=[],
        cached_at=now,
        expires_at=now,
        is_fallback=True,
        degradation_reason=reason,
    )
