"""
Rule-based farming advisories derived from a weather forecast.

Pure functions of (current conditions, forecast days, date): no I/O, no
randomness. Thresholds are fixed agronomic constants for Indian cropping
seasons (kharif: June-September monsoon, rabi: October-March).

Outputs:
    - farming recommendations: free-text list
    - agricultural advisory: seven fixed categories
    - crop planning advice: per-crop records with a priority
"""

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from backend.core.schemas import (
    AgriculturalAdvisory,
    CropPlanningAdvice,
    CropPriority,
    CurrentConditions,
    DailyForecast,
)

# Recommendation thresholds
HEAT_STRESS_TEMP = 35
FROST_RISK_TEMP = 10
OPTIMAL_TEMP_RANGE = (25, 30)
FUNGAL_RISK_HUMIDITY = 80
DROUGHT_HUMIDITY = 30
HEAVY_RAIN_MM = 10
LIKELY_RAIN_PROBABILITY = 70
DRY_SPELL_PROBABILITY = 20
STRONG_WIND = 20
MODERATE_WIND = 15
CALM_WIND = 5
HIGH_UV = 8

# Advisory flag thresholds
RAIN_EXPECTED_PROBABILITY = 60
HIGH_TEMP = 32
LOW_HUMIDITY = 40
HIGH_WIND = 15

DEFAULT_RECOMMENDATION = (
    "Weather conditions are favorable for normal farming activities"
)


@dataclass(frozen=True)
class WeatherFlags:
    """Boolean summary of a forecast shared by the advisory rules."""

    rain_expected: bool
    heavy_rain_expected: bool
    dry_period: bool
    high_temp: bool
    low_humidity: bool
    high_wind: bool

    @classmethod
    def from_weather(
        cls, current: CurrentConditions, forecast: Sequence[DailyForecast]
    ) -> "WeatherFlags":
        return cls(
            rain_expected=any(
                day.precipitation.probability > RAIN_EXPECTED_PROBABILITY
                for day in forecast
            ),
            heavy_rain_expected=any(
                day.precipitation.amount > HEAVY_RAIN_MM for day in forecast
            ),
            dry_period=all(
                day.precipitation.probability < DRY_SPELL_PROBABILITY
                for day in forecast
            ),
            high_temp=current.temperature > HIGH_TEMP,
            low_humidity=current.humidity < LOW_HUMIDITY,
            high_wind=current.wind_speed > HIGH_WIND,
        )


def _uv_above(current: CurrentConditions, threshold: float) -> bool:
    return current.uv_index is not None and current.uv_index > threshold


def seasonal_note(month: int) -> str:
    """Seasonal guidance for a calendar month (1-12)."""
    if 3 <= month <= 5:
        return "Spring season: Good time for land preparation and summer crop sowing"
    if 6 <= month <= 9:
        return "Monsoon season: Focus on kharif crops and water management"
    if 10 <= month <= 12:
        return "Post-monsoon: Ideal for rabi crop sowing and harvest of kharif crops"
    return "Winter season: Focus on rabi crop management and harvest preparation"


def generate_farming_recommendations(
    current: CurrentConditions,
    forecast: Sequence[DailyForecast],
    today: date,
) -> list[str]:
    """
    Free-text recommendations from temperature, humidity, rain, wind and UV.

    The seasonal note for `today` is always appended last. When no weather
    rule fires, a default "favorable conditions" message precedes it.
    """
    recommendations: list[str] = []
    temp = current.temperature

    # Temperature
    if temp > HEAT_STRESS_TEMP:
        recommendations += [
            "High temperature alert: Increase irrigation frequency and "
            "provide shade for sensitive crops",
            "Monitor crops for heat stress during peak afternoon hours "
            "(12-4 PM)",
        ]
    elif temp < FROST_RISK_TEMP:
        recommendations += [
            "Low temperature warning: Protect crops from frost and consider "
            "covering sensitive plants",
            "Use frost protection methods like mulching or row covers",
        ]
    elif OPTIMAL_TEMP_RANGE[0] <= temp <= OPTIMAL_TEMP_RANGE[1]:
        recommendations.append(
            "Optimal temperature for most crop activities - good time for "
            "field work"
        )

    # Humidity
    if current.humidity > FUNGAL_RISK_HUMIDITY:
        recommendations += [
            "High humidity: Monitor for fungal diseases and ensure good air "
            "circulation",
            "Avoid overhead irrigation to prevent disease spread",
        ]
    elif current.humidity < DROUGHT_HUMIDITY:
        recommendations += [
            "Low humidity: Increase irrigation and consider mulching to "
            "retain soil moisture",
            "Water plants early morning or evening to reduce evaporation",
        ]

    # Rain outlook
    if any(day.precipitation.amount > HEAVY_RAIN_MM for day in forecast):
        recommendations += [
            "Heavy rain expected: Ensure proper drainage and postpone field "
            "activities",
            "Harvest ready crops before rain if possible",
        ]
    elif any(
        day.precipitation.probability > LIKELY_RAIN_PROBABILITY
        for day in forecast
    ):
        recommendations += [
            "Rain expected: Postpone spraying activities and fertilizer "
            "application",
            "Good time for transplanting after rain stops",
        ]
    elif all(
        day.precipitation.probability < DRY_SPELL_PROBABILITY
        for day in forecast
    ):
        recommendations += [
            "Dry weather ahead: Plan irrigation schedule and check soil "
            "moisture levels",
            "Consider drought-resistant crop varieties for new plantings",
        ]

    # Wind
    if current.wind_speed > STRONG_WIND:
        recommendations += [
            "Strong winds: Secure tall crops and avoid pesticide application",
            "Check greenhouse structures and irrigation systems",
        ]
    elif current.wind_speed > MODERATE_WIND:
        recommendations.append(
            "Moderate winds: Good for natural pollination but avoid spraying"
        )
    elif current.wind_speed < CALM_WIND:
        recommendations.append(
            "Low wind conditions: Ideal for pesticide and fertilizer "
            "application"
        )

    if _uv_above(current, HIGH_UV):
        recommendations.append(
            "High UV levels: Provide shade for sensitive crops and avoid "
            "midday field work"
        )

    if not recommendations:
        recommendations.append(DEFAULT_RECOMMENDATION)

    recommendations.append(seasonal_note(today.month))
    return recommendations


# ----------------------------------------------------------------------
# Agricultural advisory (seven fixed categories)
# ----------------------------------------------------------------------


def _irrigation_advice(current: CurrentConditions, flags: WeatherFlags) -> str:
    if flags.rain_expected:
        return (
            "Reduce irrigation as rain is expected. Check soil drainage to "
            "prevent waterlogging."
        )
    if flags.dry_period and (flags.high_temp or flags.low_humidity):
        return (
            "Increase irrigation frequency due to dry conditions and high "
            "evaporation. Water early morning or evening."
        )
    if current.humidity > 70:
        return (
            "Moderate irrigation needed. Soil moisture appears adequate. "
            "Avoid overwatering."
        )
    return (
        "Normal irrigation schedule recommended. Monitor soil moisture "
        "levels regularly."
    )


def _pest_control_advice(
    current: CurrentConditions, flags: WeatherFlags
) -> str:
    if flags.rain_expected:
        return (
            "Postpone pesticide application due to expected rain. Wait for "
            "dry conditions."
        )
    if flags.high_wind:
        return (
            "Avoid pesticide spraying due to strong winds. Risk of drift and "
            "uneven application."
        )
    if current.wind_speed < CALM_WIND and current.humidity < 80:
        return (
            "Excellent conditions for pesticide application. Low wind and "
            "moderate humidity ideal."
        )
    return (
        "Good conditions for pest control activities. Monitor weather before "
        "application."
    )


def _harvesting_advice(current: CurrentConditions, flags: WeatherFlags) -> str:
    if flags.heavy_rain_expected:
        return (
            "Urgent: Harvest ready crops immediately before heavy rain. Risk "
            "of crop damage and quality loss."
        )
    if flags.rain_expected:
        return (
            "Consider harvesting ready crops before rain. Ensure proper "
            "drying facilities."
        )
    if current.humidity < 60 and current.wind_speed < 15:
        return (
            "Excellent harvesting conditions. Low humidity ideal for crop "
            "drying and storage."
        )
    return (
        "Good harvesting weather. Ensure crops are properly dried before "
        "storage."
    )


def _planting_advice(current: CurrentConditions, flags: WeatherFlags) -> str:
    temp = current.temperature
    if flags.rain_expected and 20 < temp < 35:
        return (
            "Good time for planting. Expected rain will provide natural "
            "irrigation for new seedlings."
        )
    if temp > 35:
        return (
            "Avoid planting in extreme heat. Wait for cooler conditions or "
            "provide shade protection."
        )
    if temp < 15:
        return (
            "Cold conditions may affect germination. Consider protected "
            "cultivation or wait for warmer weather."
        )
    return (
        "Suitable conditions for planting. Ensure adequate soil preparation "
        "and irrigation."
    )


def _general_advice(
    current: CurrentConditions, forecast: Sequence[DailyForecast]
) -> str:
    if not forecast:
        trend = "stable"
    elif forecast[0].weather.temperature > current.temperature:
        trend = "rising"
    else:
        trend = "falling"
    return (
        f"Temperature {trend}. Monitor weather closely for next 3 days. "
        "Plan field activities accordingly."
    )


def _soil_conditions_advice(
    current: CurrentConditions, flags: WeatherFlags
) -> str:
    if flags.rain_expected:
        return (
            "Soil moisture will improve with expected rain. Ensure proper "
            "drainage to prevent waterlogging."
        )
    if flags.dry_period:
        return (
            "Soil may become dry. Consider mulching to retain moisture and "
            "reduce evaporation."
        )
    if 25 < current.temperature < 30:
        return (
            "Soil temperature optimal for root development. Good conditions "
            "for plant growth."
        )
    return (
        "Monitor soil moisture and temperature. Adjust irrigation and "
        "cultivation practices as needed."
    )


def _crop_protection_advice(
    current: CurrentConditions,
    forecast: Sequence[DailyForecast],
    flags: WeatherFlags,
) -> str:
    if flags.high_temp and _uv_above(current, 7):
        return (
            "Provide shade protection for sensitive crops. High UV and "
            "temperature can cause stress."
        )
    if flags.high_wind:
        return (
            "Secure tall and climbing crops. Strong winds can cause physical "
            "damage and lodging."
        )
    if any("storm" in day.weather.description.lower() for day in forecast):
        return (
            "Storm conditions possible. Consider protective covers for "
            "valuable crops."
        )
    return (
        "Normal crop protection measures sufficient. Monitor for pest and "
        "disease pressure."
    )


def generate_agricultural_advisory(
    current: CurrentConditions, forecast: Sequence[DailyForecast]
) -> AgriculturalAdvisory:
    flags = WeatherFlags.from_weather(current, forecast)
    return AgriculturalAdvisory(
        irrigation=_irrigation_advice(current, flags),
        pest_control=_pest_control_advice(current, flags),
        harvesting=_harvesting_advice(current, flags),
        planting=_planting_advice(current, flags),
        general_advice=_general_advice(current, forecast),
        soil_conditions=_soil_conditions_advice(current, flags),
        crop_protection=_crop_protection_advice(current, forecast, flags),
    )


# ----------------------------------------------------------------------
# Crop planning
# ----------------------------------------------------------------------


def generate_crop_planning_advice(
    current: CurrentConditions,
    forecast: Sequence[DailyForecast],
    today: date,
) -> list[CropPlanningAdvice]:
    """Per-crop suggestions whose condition holds for today's weather."""
    flags = WeatherFlags.from_weather(current, forecast)
    temp = current.temperature
    month = today.month
    advice: list[CropPlanningAdvice] = []

    if flags.rain_expected and 20 < temp < 35:
        advice.append(
            CropPlanningAdvice(
                crop_type="Rice",
                recommendation=(
                    "Ideal conditions for rice transplanting. Expected rain "
                    "will provide necessary water."
                ),
                timing="Next 2-3 days before rain",
                priority=CropPriority.HIGH,
                weather_factor="Upcoming rain and optimal temperature",
            )
        )

    # Rabi season: November to March
    if (month >= 11 or month <= 3) and temp < 25 and current.humidity > 50:
        advice.append(
            CropPlanningAdvice(
                crop_type="Wheat",
                recommendation=(
                    "Good conditions for wheat sowing and growth. Cool "
                    "temperature favorable."
                ),
                timing="Current week",
                priority=CropPriority.MEDIUM,
                weather_factor="Cool temperature and adequate humidity",
            )
        )

    if temp > 30 or _uv_above(current, 7):
        advice.append(
            CropPlanningAdvice(
                crop_type="Tomato",
                recommendation=(
                    "Protect tomato plants from heat stress. Provide shade "
                    "and increase watering."
                ),
                timing="Immediate action required",
                priority=CropPriority.HIGH,
                weather_factor="High temperature and UV exposure",
            )
        )

    # Cotton sowing window: April to July
    if 4 <= month <= 7 and temp > 25 and not flags.rain_expected:
        advice.append(
            CropPlanningAdvice(
                crop_type="Cotton",
                recommendation=(
                    "Good conditions for cotton sowing. Ensure adequate "
                    "irrigation setup."
                ),
                timing="This week",
                priority=CropPriority.MEDIUM,
                weather_factor="Warm temperature and dry conditions",
            )
        )

    if flags.rain_expected and temp > 25:
        advice.append(
            CropPlanningAdvice(
                crop_type="Sugarcane",
                recommendation=(
                    "Excellent time for sugarcane planting. Rain will help "
                    "establishment."
                ),
                timing="Before expected rain",
                priority=CropPriority.MEDIUM,
                weather_factor="Warm temperature and expected rainfall",
            )
        )

    if temp < 30 and 40 < current.humidity < 80:
        advice.append(
            CropPlanningAdvice(
                crop_type="Leafy Vegetables",
                recommendation=(
                    "Favorable conditions for leafy vegetable cultivation. "
                    "Good growth expected."
                ),
                timing="Current conditions",
                priority=CropPriority.LOW,
                weather_factor="Moderate temperature and humidity",
            )
        )

    return advice


@dataclass(frozen=True)
class DerivedAdvisories:
    farming_recommendations: list[str]
    agricultural_advisory: AgriculturalAdvisory
    crop_planning_advice: list[CropPlanningAdvice]


def derive_advisories(
    current: CurrentConditions,
    forecast: Sequence[DailyForecast],
    today: date,
) -> DerivedAdvisories:
    """Run all three derivations for one forecast."""
    return DerivedAdvisories(
        farming_recommendations=generate_farming_recommendations(
            current, forecast, today
        ),
        agricultural_advisory=generate_agricultural_advisory(
            current, forecast
        ),
        crop_planning_advice=generate_crop_planning_advice(
            current, forecast, today
        ),
    )
