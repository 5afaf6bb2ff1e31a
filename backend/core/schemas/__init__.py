from .weather import (
    AgriculturalAdvisory,
    AlertSeverity,
    AlertType,
    CropPlanningAdvice,
    CropPriority,
    CurrentConditions,
    DailyForecast,
    FarmingAlert,
    GeoLocation,
    Precipitation,
    ProviderWeather,
    WeatherForecastResult,
)

__all__ = [
    "AgriculturalAdvisory",
    "AlertSeverity",
    "AlertType",
    "CropPlanningAdvice",
    "CropPriority",
    "CurrentConditions",
    "DailyForecast",
    "FarmingAlert",
    "GeoLocation",
    "Precipitation",
    "ProviderWeather",
    "WeatherForecastResult",
]
