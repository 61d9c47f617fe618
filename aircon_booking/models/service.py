"""Service catalogue model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from aircon_booking.core.timeutils import utcnow
from aircon_booking.database import Base
from aircon_booking.models.time_slot import generate_id


class Service(Base):
    """Represents a bookable service type (general servicing, chemical wash, ...)."""
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, unique=True, nullable=False)
    description = Column(String)
    duration_minutes = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
