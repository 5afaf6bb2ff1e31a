"""
Durable tier of the forecast cache.

One row per location key, superseded on every successful provider fetch.
`expires_at` marks when the row stops being useful even as a stale fallback;
expired rows are removed by the `weather.purge_expired_cache` Celery task.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Index, String
from sqlalchemy.dialects.postgresql import JSONB

from backend.database.connection import Base


class WeatherCacheEntry(Base):
    """
    Cached forecast result for one location key.

    Attributes:
        location_key: "lat,lon" quantized to 4 decimals (primary key)
        latitude: Requested latitude
        longitude: Requested longitude
        payload: Serialized WeatherForecastResult (JSONB on PostgreSQL)
        cached_at: When the forecast was fetched from the provider
        expires_at: When the row becomes eligible for purge

    Indexes:
        idx_weather_cache_expires_at: For the periodic purge
    """

    __tablename__ = "weather_cache"
    __table_args__ = (
        Index("idx_weather_cache_expires_at", "expires_at"),
    )

    location_key = Column(
        String(32), primary_key=True, comment="Quantized 'lat,lon' key"
    )
    latitude = Column(Float, nullable=False, comment="Latitude (degrees)")
    longitude = Column(Float, nullable=False, comment="Longitude (degrees)")
    payload = Column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        comment="Serialized forecast result",
    )
    cached_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="Provider fetch time",
    )
    expires_at = Column(
        DateTime(timezone=True), nullable=False, comment="Purge after"
    )

    def __repr__(self):
        return (
            f"<WeatherCacheEntry(key={self.location_key}, "
            f"cached_at={self.cached_at}, expires_at={self.expires_at})>"
        )
