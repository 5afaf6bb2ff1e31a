"""
Unit tests for OpenWeatherClient (HTTP mocked with respx).
"""

from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from backend.api.services.openweather import OpenWeatherClient, OpenWeatherConfig
from backend.api.services.openweather.openweather_client import round_half_up
from backend.core.errors import (
    ExternalServiceError,
    OperationTimeoutError,
    ProviderAuthenticationError,
    ProviderRateLimitError,
    ProviderUnavailableError,
)
from backend.core.schemas import GeoLocation

BASE_URL = "https://api.test/data/2.5"
CURRENT_URL = f"{BASE_URL}/weather"
FORECAST_URL = f"{BASE_URL}/forecast"

DELHI = GeoLocation(latitude=28.6139, longitude=77.2090)

DAY_ONE = datetime(2026, 6, 16, tzinfo=timezone.utc)


def _item(when: datetime, temp: float, pop: float = 0.0, **extra):
    item = {
        "dt": int(when.timestamp()),
        "main": {"temp": temp, "humidity": 60, "pressure": 1008},
        "wind": {"speed": 3.5, "deg": 200},
        "weather": [{"description": "scattered clouds", "icon": "03d"}],
        "visibility": 10000,
        "pop": pop,
    }
    item.update(extra)
    return item


CURRENT_PAYLOAD = {
    "main": {"temp": 41.6, "humidity": 20, "pressure": 1005, "feels_like": 44.2},
    "wind": {"speed": 4.1, "deg": 270},
    "weather": [{"description": "clear sky", "icon": "01d"}],
    "visibility": 8000,
}

FORECAST_PAYLOAD = {
    "list": [
        # Deliberately unordered
        _item(DAY_ONE + timedelta(days=1, hours=3), 27.0, snow={"3h": 1.2}),
        _item(DAY_ONE, 20.4),
        _item(DAY_ONE + timedelta(hours=6), 30.2),
        _item(DAY_ONE + timedelta(hours=3), 25.5, pop=0.5, rain={"3h": 2.5}),
        _item(DAY_ONE + timedelta(days=1), 22.0),
        _item(DAY_ONE + timedelta(days=2, hours=12), 31.0, pop=0.1),
        _item(DAY_ONE + timedelta(days=3, hours=12), 33.0),
    ]
}


@pytest.fixture
async def client():
    config = OpenWeatherConfig(
        base_url=BASE_URL, api_key="test-key", timeout=1.0, call_timeout=2.0
    )
    async with OpenWeatherClient(config) as c:
        yield c


class TestParsing:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(41.4) == 41

    def test_parse_current(self):
        current = OpenWeatherClient.parse_current(CURRENT_PAYLOAD)

        assert current.temperature == 42
        assert current.feels_like == 44
        assert current.humidity == 20
        assert current.wind_speed == 4.1
        assert current.visibility == 8.0
        assert current.description == "clear sky"

    def test_parse_forecast_groups_by_day(self):
        days = OpenWeatherClient.parse_forecast(FORECAST_PAYLOAD)

        assert [d.date for d in days] == [
            date(2026, 6, 16),
            date(2026, 6, 17),
            date(2026, 6, 18),
        ]

        first = days[0]
        # middle 3-hourly item of the day
        assert first.weather.temperature == 26
        assert first.precipitation.probability == 50.0
        assert first.precipitation.amount == 2.5
        assert (first.min_temp, first.max_temp) == (20, 30)

    def test_snow_used_when_no_rain(self):
        days = OpenWeatherClient.parse_forecast(FORECAST_PAYLOAD)

        assert days[1].precipitation.amount == 1.2
        assert days[2].precipitation.amount == 0


class TestFetchWeather:
    async def test_fetch_weather(self, client, http_mock):
        current_route = http_mock.get(CURRENT_URL).mock(
            return_value=httpx.Response(200, json=CURRENT_PAYLOAD)
        )
        http_mock.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json=FORECAST_PAYLOAD)
        )

        weather = await client.fetch_weather(DELHI)

        assert weather.current.temperature == 42
        assert len(weather.forecast) == 3
        params = current_route.calls.last.request.url.params
        assert params["appid"] == "test-key"
        assert params["units"] == "metric"
        assert params["lat"] == "28.6139"

    @pytest.mark.parametrize(
        "status,error",
        [
            (401, ProviderAuthenticationError),
            (429, ProviderRateLimitError),
            (500, ExternalServiceError),
        ],
    )
    async def test_http_status_mapping(self, client, http_mock, status, error):
        http_mock.get(CURRENT_URL).mock(return_value=httpx.Response(status))

        with pytest.raises(error):
            await client.get_current_weather(DELHI)

    async def test_auth_error_code(self, client, http_mock):
        http_mock.get(CURRENT_URL).mock(return_value=httpx.Response(401))

        with pytest.raises(ProviderAuthenticationError) as exc_info:
            await client.get_current_weather(DELHI)
        assert exc_info.value.code == "WEATHER_API_AUTH_FAILED"

    @pytest.mark.parametrize("side_effect", [httpx.ConnectError, httpx.ConnectTimeout])
    async def test_connection_failure_is_unavailable(
        self, client, http_mock, side_effect
    ):
        http_mock.get(CURRENT_URL).mock(side_effect=side_effect)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await client.get_current_weather(DELHI)
        assert exc_info.value.code == "WEATHER_SERVICE_UNAVAILABLE"

    async def test_read_timeout(self, client, http_mock):
        http_mock.get(FORECAST_URL).mock(side_effect=httpx.ReadTimeout)

        with pytest.raises(OperationTimeoutError):
            await client.get_forecast(DELHI)

    async def test_invalid_json(self, client, http_mock):
        http_mock.get(CURRENT_URL).mock(
            return_value=httpx.Response(200, content=b"<html>oops</html>")
        )

        with pytest.raises(ExternalServiceError, match="invalid JSON"):
            await client.get_current_weather(DELHI)

    async def test_unexpected_payload(self, client, http_mock):
        http_mock.get(CURRENT_URL).mock(
            return_value=httpx.Response(200, json={"main": {}})
        )

        with pytest.raises(ExternalServiceError, match="unexpected payload"):
            await client.get_current_weather(DELHI)
