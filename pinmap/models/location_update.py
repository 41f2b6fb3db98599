from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from pinmap.database import Base


class LocationUpdate(Base):
    """Append-only record of an accepted pin or move."""

    __tablename__ = "location_updates"
    __table_args__ = (
        Index("idx_location_updates_user_id", "user_id"),
        Index("idx_location_updates_timestamp", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    coordinates = Column(String, nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="location_updates")
