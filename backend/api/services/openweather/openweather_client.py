"""
OpenWeather Client - Current conditions + 3-day forecast.
Client for the OpenWeather 2.5 API (current weather and 5 day / 3 hour
forecast). License: CC BY-SA 4.0 (attribution required).

- Current: GET /weather?lat=..&lon=..&appid=..&units=metric
- Forecast: GET /forecast?lat=..&lon=..&appid=..&units=metric
  (40 items, one every 3 hours)

Features:
- 3-hourly items grouped by UTC calendar day, first 3 days kept
- Daily snapshot = middle item of the day
- Daily min/max temperature across the day's items (numpy)
- Precipitation amount = rain.3h, else snow.3h, else 0
- Temperatures rounded half-up to whole degrees, visibility m -> km

Error mapping (never retried here, the circuit breaker decides):
- connection refused / DNS failure / connect timeout -> ProviderUnavailableError
- HTTP 401 -> ProviderAuthenticationError
- HTTP 429 -> ProviderRateLimitError
- read/write timeout -> OperationTimeoutError
- other HTTP errors / malformed payloads -> ExternalServiceError

API Documentation:
https://openweathermap.org/current
https://openweathermap.org/forecast5
"""

import math
import os
import time
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any

import httpx
import numpy as np
from loguru import logger
from pydantic import BaseModel, Field

from backend.api.middleware.prometheus_metrics import PROVIDER_LATENCY
from backend.core.errors import (
    ExternalServiceError,
    OperationTimeoutError,
    ProviderAuthenticationError,
    ProviderRateLimitError,
    ProviderUnavailableError,
)
from backend.core.resilience.timeout import with_timeout
from backend.core.schemas import (
    CurrentConditions,
    DailyForecast,
    GeoLocation,
    Precipitation,
    ProviderWeather,
)

FORECAST_DAYS = 3


class OpenWeatherConfig(BaseModel):
    """
    OpenWeather API configuration.

    Attributes:
        base_url: API base endpoint (2.5)
        api_key: appid query parameter
        timeout: HTTP request timeout (seconds)
        call_timeout: Deadline for one endpoint call incl. parsing (seconds)
        units: Unit system requested from the API
    """

    base_url: str = Field(
        default=os.getenv(
            "WEATHER_API_URL", "https://api.openweathermap.org/data/2.5"
        )
    )
    api_key: str = Field(default=os.getenv("WEATHER_API_KEY", ""))
    timeout: float = Field(5.0, description="HTTP timeout (s)")
    call_timeout: float = Field(10.0, description="Per-call deadline (s)")
    units: str = "metric"


def round_half_up(value: float) -> int:
    """Round .5 towards +inf (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


class OpenWeatherClient:
    """
    Async client for OpenWeather current + forecast endpoints.

    Context Manager:
        Supports async with for automatic resource management.

    Example:
        async with OpenWeatherClient(OpenWeatherConfig(api_key="...")) as c:
            weather = await c.fetch_weather(
                GeoLocation(latitude=28.6139, longitude=77.2090)
            )
            print(weather.current.temperature)
    """

    def __init__(
        self,
        config: OpenWeatherConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or OpenWeatherConfig()
        self.client = http_client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers={"Accept": "application/json"},
        )
        if not self.config.api_key:
            logger.warning(
                "⚠️ WEATHER_API_KEY not set, OpenWeather will reject requests"
            )
        logger.info(
            f"OpenWeatherClient initialized | base_url={self.config.base_url}"
        )

    async def close(self):
        await self.client.aclose()
        logger.debug("OpenWeatherClient closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get(self, path: str, location: GeoLocation) -> dict[str, Any]:
        """
        GET an endpoint and return its JSON body.

        Raises:
            ProviderUnavailableError: Connection failure or connect timeout
            ProviderAuthenticationError: HTTP 401
            ProviderRateLimitError: HTTP 429
            OperationTimeoutError: Read or write timeout
            ExternalServiceError: Any other HTTP or decoding error
        """
        params = {
            "lat": location.latitude,
            "lon": location.longitude,
            "appid": self.config.api_key,
            "units": self.config.units,
        }
        try:
            response = await self.client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                raise ProviderAuthenticationError() from e
            if status == 429:
                raise ProviderRateLimitError() from e
            raise ExternalServiceError(
                "Weather API", f"Weather API request failed ({status})"
            ) from e
        except (httpx.ConnectTimeout, httpx.NetworkError) as e:
            raise ProviderUnavailableError() from e
        except httpx.TimeoutException as e:
            raise OperationTimeoutError(
                f"Weather API request timed out ({path})"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                "Weather API", str(e) or "Weather API request failed"
            ) from e
        except ValueError as e:
            raise ExternalServiceError(
                "Weather API", "Weather API returned invalid JSON"
            ) from e

    async def get_current_weather(
        self, location: GeoLocation
    ) -> CurrentConditions:
        data = await with_timeout(
            lambda: self._get("/weather", location),
            self.config.call_timeout,
            "Weather API request timed out",
        )
        return self._parse(self.parse_current, data)

    async def get_forecast(self, location: GeoLocation) -> list[DailyForecast]:
        data = await with_timeout(
            lambda: self._get("/forecast", location),
            self.config.call_timeout,
            "Weather forecast API request timed out",
        )
        return self._parse(self.parse_forecast, data)

    async def fetch_weather(self, location: GeoLocation) -> ProviderWeather:
        """
        Current conditions + first 3 forecast days for a location.

        Args:
            location: Coordinates

        Returns:
            ProviderWeather (forecast ordered ascending by date)
        """
        start = time.perf_counter()
        try:
            current = await self.get_current_weather(location)
            forecast = await self.get_forecast(location)
        finally:
            PROVIDER_LATENCY.observe(time.perf_counter() - start)

        logger.info(
            f"✅ OpenWeather data retrieved | "
            f"({location.latitude:.4f}, {location.longitude:.4f}) | "
            f"{current.temperature}°C | {len(forecast)} forecast days"
        )
        return ProviderWeather(current=current, forecast=forecast)

    @staticmethod
    def _parse(parser, data: dict[str, Any]):
        try:
            return parser(data)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"❌ Malformed OpenWeather payload: {e!r}")
            raise ExternalServiceError(
                "Weather API", "Weather API returned an unexpected payload"
            ) from e

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_snapshot(item: dict[str, Any]) -> CurrentConditions:
        main = item["main"]
        wind = item.get("wind") or {}
        weather = (item.get("weather") or [{}])[0]
        return CurrentConditions(
            temperature=round_half_up(main["temp"]),
            humidity=main["humidity"],
            pressure=main["pressure"],
            wind_speed=wind.get("speed") or 0,
            wind_direction=wind.get("deg") or 0,
            description=weather.get("description", ""),
            icon=weather.get("icon", ""),
            visibility=(item.get("visibility") or 0) / 1000,
            uv_index=item.get("uvi"),
            feels_like=round_half_up(main.get("feels_like", main["temp"])),
        )

    @classmethod
    def parse_current(cls, data: dict[str, Any]) -> CurrentConditions:
        """Parse the /weather payload."""
        return cls._parse_snapshot(data)

    @classmethod
    def parse_forecast(
        cls, data: dict[str, Any], days: int = FORECAST_DAYS
    ) -> list[DailyForecast]:
        """
        Aggregate the 3-hourly /forecast list into daily entries.

        Args:
            data: /forecast payload ({"list": [...]})
            days: Number of days to keep

        Returns:
            list[DailyForecast] ordered ascending by date
        """
        by_day: dict[date, list[dict[str, Any]]] = defaultdict(list)
        for item in data["list"]:
            day = datetime.fromtimestamp(item["dt"], tz=timezone.utc).date()
            by_day[day].append(item)

        forecasts: list[DailyForecast] = []
        for day in sorted(by_day)[:days]:
            items = sorted(by_day[day], key=lambda i: i["dt"])
            mid = items[len(items) // 2]
            temps = np.array([i["main"]["temp"] for i in items], dtype=float)
            amount = (mid.get("rain") or {}).get("3h") or (
                mid.get("snow") or {}
            ).get("3h") or 0

            forecasts.append(
                DailyForecast(
                    date=day,
                    weather=cls._parse_snapshot(mid),
                    precipitation=Precipitation(
                        probability=(mid.get("pop") or 0) * 100,
                        amount=amount,
                    ),
                    min_temp=round_half_up(float(np.min(temps))),
                    max_temp=round_half_up(float(np.max(temps))),
                )
            )

        logger.debug(f"Parsed {len(forecasts)} forecast days from {len(by_day)}")
        return forecasts
