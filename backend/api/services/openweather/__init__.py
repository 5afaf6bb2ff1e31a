from .openweather_client import OpenWeatherClient, OpenWeatherConfig

__all__ = ["OpenWeatherClient", "OpenWeatherConfig"]
