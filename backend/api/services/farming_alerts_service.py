"""
Farming alerts derived from a farmer's forecast.

Rules (applied to the forecast for the farmer's stored location):
- current temperature > 40 °C                     -> temperature, critical
- first day with rain probability > 80 % and
  amount > 10 mm                                  -> rain, high
- current wind speed > 20                         -> wind, medium

Alerts are persisted with a 24 h lifetime and listed newest first.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.api.services.weather_forecast_service import (
    WeatherForecastService,
)
from backend.core.errors import DatabaseError
from backend.core.schemas import (
    AlertSeverity,
    AlertType,
    FarmingAlert,
    GeoLocation,
    WeatherForecastResult,
)
from backend.database.connection import get_session
from backend.database.models import Farmer, WeatherAlert

EXTREME_HEAT_TEMP = 40
HEAVY_RAIN_PROBABILITY = 80
HEAVY_RAIN_MM = 10
STRONG_WIND = 20


def build_alerts(
    weather: WeatherForecastResult,
    user_id: int,
    now: datetime,
    lifetime: timedelta,
) -> list[WeatherAlert]:
    """Alert rows for one forecast (not yet persisted)."""
    current = weather.current
    location = weather.location
    rows: list[WeatherAlert] = []

    def add(alert_type, title, message, severity):
        rows.append(
            WeatherAlert(
                user_id=user_id,
                alert_type=alert_type.value,
                title=title,
                message=message,
                severity=severity.value,
                latitude=location.latitude,
                longitude=location.longitude,
                is_active=True,
                created_at=now,
                expires_at=now + lifetime,
            )
        )

    if current.temperature > EXTREME_HEAT_TEMP:
        add(
            AlertType.TEMPERATURE,
            "Extreme Heat Warning",
            f"Temperature is {current.temperature:g}°C. Increase irrigation "
            "and provide shade for crops.",
            AlertSeverity.CRITICAL,
        )

    heavy_rain_day = next(
        (
            day
            for day in weather.forecast
            if day.precipitation.probability > HEAVY_RAIN_PROBABILITY
            and day.precipitation.amount > HEAVY_RAIN_MM
        ),
        None,
    )
    if heavy_rain_day is not None:
        add(
            AlertType.RAIN,
            "Heavy Rain Alert",
            f"Heavy rain expected on {heavy_rain_day.date.strftime('%a %b %d %Y')}. "
            "Ensure proper drainage and postpone field activities.",
            AlertSeverity.HIGH,
        )

    if current.wind_speed > STRONG_WIND:
        add(
            AlertType.WIND,
            "Strong Wind Warning",
            f"Wind speed is {current.wind_speed:g} m/s. Secure tall crops "
            "and avoid spraying.",
            AlertSeverity.MEDIUM,
        )

    return rows


class FarmingAlertService:
    """
    Args:
        forecast_service: Orchestrator used to get the farmer's forecast
        session_maker: Async session factory
        alert_duration: Alert lifetime in seconds
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        forecast_service: WeatherForecastService,
        session_maker: async_sessionmaker[AsyncSession],
        alert_duration: int = 86400,
        clock: Callable[[], datetime] | None = None,
    ):
        self.forecast_service = forecast_service
        self.session_maker = session_maker
        self.alert_lifetime = timedelta(seconds=alert_duration)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_user_location(self, user_id: int) -> GeoLocation | None:
        try:
            async with get_session(self.session_maker) as session:
                farmer = await session.get(Farmer, user_id)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"❌ Failed to load farmer {user_id}: {e}")
            raise DatabaseError(f"Failed to load user location: {e}") from e

        if farmer is None or not farmer.has_location:
            return None
        return GeoLocation(latitude=farmer.latitude, longitude=farmer.longitude)

    async def generate_farming_alerts(self, user_id: int) -> list[FarmingAlert]:
        """
        Derive and persist alerts for a farmer's stored location.

        Returns:
            The new alerts ([] if the farmer or their location is unknown)

        Raises:
            DatabaseError: Farmer lookup or alert insert failed
        """
        location = await self.get_user_location(user_id)
        if location is None:
            logger.info(f"No stored location for user {user_id}, no alerts")
            return []

        weather = await self.forecast_service.get_forecast(location)
        rows = build_alerts(weather, user_id, self._clock(), self.alert_lifetime)
        if not rows:
            return []

        try:
            async with get_session(self.session_maker) as session:
                session.add_all(rows)
                await session.flush()
                alerts = [FarmingAlert.model_validate(row) for row in rows]
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"❌ Failed to save alerts for user {user_id}: {e}")
            raise DatabaseError(f"Failed to save farming alerts: {e}") from e

        logger.info(
            f"🔔 {len(alerts)} farming alert(s) generated for user {user_id}"
        )
        return alerts

    async def get_user_alerts(self, user_id: int) -> list[FarmingAlert]:
        """Active, unexpired alerts for a farmer, newest first."""
        now = self._clock()
        try:
            async with get_session(self.session_maker) as session:
                rows = await session.scalars(
                    select(WeatherAlert)
                    .where(
                        WeatherAlert.user_id == user_id,
                        WeatherAlert.is_active.is_(True),
                        WeatherAlert.expires_at > now,
                    )
                    .order_by(WeatherAlert.created_at.desc())
                )
                return [FarmingAlert.model_validate(row) for row in rows]
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"❌ Failed to list alerts for user {user_id}: {e}")
            raise DatabaseError(f"Failed to load farming alerts: {e}") from e

    async def purge_expired_alerts(self, now: datetime | None = None) -> int:
        now = now or self._clock()
        try:
            async with get_session(self.session_maker) as session:
                result = await session.execute(
                    delete(WeatherAlert).where(WeatherAlert.expires_at <= now)
                )
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to purge farming alerts: {e}") from e
        removed = result.rowcount or 0
        logger.info(f"🧹 Purged {removed} expired farming alerts")
        return removed

    async def users_with_location(self) -> list[int]:
        try:
            async with get_session(self.session_maker) as session:
                ids = await session.scalars(
                    select(Farmer.id).where(
                        Farmer.latitude.is_not(None),
                        Farmer.longitude.is_not(None),
                    )
                )
                return list(ids)
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to list farmers: {e}") from e
