"""
FastAPI dependencies.

Services are built once in the application lifespan and stored on
`app.state.services`; tests replace them with `app.dependency_overrides`.
"""

from fastapi import Request

from backend.api.services.farming_alerts_service import FarmingAlertService
from backend.api.services.weather_factory import WeatherServices
from backend.api.services.weather_forecast_service import WeatherForecastService


def get_services(request: Request) -> WeatherServices:
    return request.app.state.services


def get_weather_service(request: Request) -> WeatherForecastService:
    return get_services(request).forecast_service


def get_alert_service(request: Request) -> FarmingAlertService:
    return get_services(request).alert_service
