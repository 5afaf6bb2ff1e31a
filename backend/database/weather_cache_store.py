"""
Durable forecast store (PostgreSQL via SQLAlchemy async).

Upsert-by-key and delete-by-key over the `weather_cache` table. PostgreSQL
has no document TTL, so `purge_expired()` is run periodically by Celery beat.
All database failures (SQLAlchemy errors and driver-level OSErrors such as a
refused asyncpg connection) are raised as `DatabaseError`; the two-tier cache
decides whether to absorb them.
"""

from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.core.errors import DatabaseError
from backend.core.schemas import WeatherForecastResult
from backend.database.connection import get_session
from backend.database.models.weather_cache import WeatherCacheEntry


class WeatherCacheStore:
    """Durable cache tier keyed by location key."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def get(self, location_key: str) -> WeatherForecastResult | None:
        try:
            async with get_session(self.session_maker) as session:
                entry = await session.get(WeatherCacheEntry, location_key)
                payload = entry.payload if entry is not None else None
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to read weather cache: {e}") from e

        if payload is None:
            return None
        try:
            return WeatherForecastResult.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                f"⚠️ Undecodable durable cache row {location_key}: {e}"
            )
            return None

    async def upsert(
        self, location_key: str, result: WeatherForecastResult
    ) -> None:
        """Insert or replace the row; `expires_at` mirrors the result's."""
        entry = WeatherCacheEntry(
            location_key=location_key,
            latitude=result.location.latitude,
            longitude=result.location.longitude,
            payload=result.model_dump(mode="json"),
            cached_at=result.cached_at,
            expires_at=result.expires_at,
        )
        try:
            async with get_session(self.session_maker) as session:
                await session.merge(entry)
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to write weather cache: {e}") from e

    async def delete(self, location_key: str) -> bool:
        try:
            async with get_session(self.session_maker) as session:
                result = await session.execute(
                    delete(WeatherCacheEntry).where(
                        WeatherCacheEntry.location_key == location_key
                    )
                )
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to delete weather cache: {e}") from e
        return (result.rowcount or 0) > 0

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete rows whose `expires_at` has passed. Returns rows removed."""
        now = now or datetime.now(timezone.utc)
        try:
            async with get_session(self.session_maker) as session:
                result = await session.execute(
                    delete(WeatherCacheEntry).where(
                        WeatherCacheEntry.expires_at <= now
                    )
                )
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to purge weather cache: {e}") from e
        removed = result.rowcount or 0
        logger.info(f"🧹 Purged {removed} expired weather cache rows")
        return removed

