"""
Weather domain models.

Closed, typed records for everything that flows through the forecast
pipeline. Provider payloads are parsed into these models once; cache tiers
serialize them with `model_dump_json()` and restore them with
`model_validate_json()`.

Units:
    temperature, feels_like, min/max temp: °C (rounded half-up)
    humidity, precipitation probability: %
    pressure: hPa
    wind_speed: as reported by the provider (m/s with units=metric)
    visibility: km
    precipitation amount: mm over the 3h snapshot
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GeoLocation(BaseModel):
    """Coordinates requested by the caller (WGS84)."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude")


class CurrentConditions(BaseModel):
    """Point-in-time weather snapshot. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(..., description="Temperature (°C)")
    humidity: float = Field(..., description="Relative humidity (%)")
    pressure: float = Field(..., description="Sea-level pressure (hPa)")
    wind_speed: float = Field(0.0, description="Wind speed")
    wind_direction: float = Field(0.0, description="Wind direction (deg)")
    description: str = Field("", description="Textual description")
    icon: str = Field("", description="Provider icon code")
    visibility: float = Field(0.0, description="Visibility (km)")
    uv_index: float | None = Field(None, description="UV index")
    feels_like: float = Field(..., description="Apparent temperature (°C)")


class Precipitation(BaseModel):
    model_config = ConfigDict(frozen=True)

    probability: float = Field(0.0, description="Probability (%)")
    amount: float = Field(0.0, description="Amount (mm)")


class DailyForecast(BaseModel):
    """One forecast day; lists of these are ordered ascending by date."""

    model_config = ConfigDict(frozen=True)

    date: date
    weather: CurrentConditions
    precipitation: Precipitation
    min_temp: float
    max_temp: float


class AgriculturalAdvisory(BaseModel):
    """The seven fixed advisory categories."""

    irrigation: str
    pest_control: str
    harvesting: str
    planting: str
    general_advice: str
    soil_conditions: str
    crop_protection: str


class CropPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CropPlanningAdvice(BaseModel):
    crop_type: str
    recommendation: str
    timing: str
    priority: CropPriority
    weather_factor: str


class ProviderWeather(BaseModel):
    """Raw provider output before advisories are derived."""

    current: CurrentConditions
    forecast: list[DailyForecast] = Field(default_factory=list)


class WeatherForecastResult(BaseModel):
    """
    Forecast-shaped response returned by the orchestrator.

    Live results are cached in both tiers. Degraded results are flagged with
    `is_stale` (served from an expired cache entry) or `is_fallback` (static
    placeholder data) and carry the error code that caused the degradation.
    """

    location_key: str
    location: GeoLocation
    current: CurrentConditions
    forecast: list[DailyForecast] = Field(default_factory=list)
    farming_recommendations: list[str] = Field(default_factory=list)
    agricultural_advisory: AgriculturalAdvisory
    crop_planning_advice: list[CropPlanningAdvice] = Field(
        default_factory=list
    )
    cached_at: datetime
    expires_at: datetime
    is_fallback: bool = False
    is_stale: bool = False
    degradation_reason: str | None = None


class AlertType(str, Enum):
    RAIN = "rain"
    TEMPERATURE = "temperature"
    WIND = "wind"
    HUMIDITY = "humidity"
    FARMING_ACTIVITY = "farming_activity"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FarmingAlert(BaseModel):
    """Alert as exposed to API consumers."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    user_id: int
    alert_type: AlertType
    title: str
    message: str
    severity: AlertSeverity
    latitude: float
    longitude: float
    is_active: bool = True
    created_at: datetime
    expires_at: datetime
