from .farmer import Farmer
from .weather_alert import WeatherAlert
from .weather_cache import WeatherCacheEntry

__all__ = ["Farmer", "WeatherAlert", "WeatherCacheEntry"]
