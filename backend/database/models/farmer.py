from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String

from backend.database.connection import Base


class Farmer(Base):
    """
    Minimal farmer record: the stored location used for personal forecasts
    and alerts. Profile data lives in the user service.
    """

    __tablename__ = "farmers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    latitude = Column(Float, nullable=True, comment="Farm latitude")
    longitude = Column(Float, nullable=True, comment="Farm longitude")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return (
            f"<Farmer(id={self.id}, lat={self.latitude}, "
            f"lon={self.longitude})>"
        )
