from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)

from backend.database.connection import Base


class WeatherAlert(Base):
    """
    Farming alert derived from a forecast for one farmer.

    Attributes:
        id: Auto-increment primary key
        user_id: Farmer the alert belongs to (farmers.id)
        alert_type: rain | temperature | wind | humidity | farming_activity
        title: Short headline
        message: Actionable description
        severity: low | medium | high | critical
        latitude: Forecast location latitude
        longitude: Forecast location longitude
        is_active: False once dismissed
        created_at: Creation time
        expires_at: Alert is hidden after this time

    Indexes:
        idx_weather_alert_user_active: For the farmer's alert list
        idx_weather_alert_expires_at: For the periodic purge
    """

    __tablename__ = "weather_alerts"
    __table_args__ = (
        Index("idx_weather_alert_user_active", "user_id", "is_active"),
        Index("idx_weather_alert_expires_at", "expires_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, nullable=False, index=True, comment="Farmer id (farmers.id)"
    )
    alert_type = Column(String(32), nullable=False, comment="Alert category")
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, comment="Alert severity")
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return (
            f"<WeatherAlert(id={self.id}, user_id={self.user_id}, "
            f"type={self.alert_type}, severity={self.severity})>"
        )
