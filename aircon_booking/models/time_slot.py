"""Time slot model definitions."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from aircon_booking.core.timeutils import utcnow
from aircon_booking.database import Base


def generate_id() -> str:
    return str(uuid4())


class TimeSlot(Base):
    """Represents a bookable window for one service."""
    __tablename__ = "time_slots"

    id = Column(String(36), primary_key=True, default=generate_id)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    technician_id = Column(String(36), ForeignKey("technicians.id"), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
