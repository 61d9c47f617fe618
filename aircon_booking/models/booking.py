"""Booking model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from aircon_booking.core.timeutils import utcnow
from aircon_booking.database import Base
from aircon_booking.models.time_slot import generate_id

BOOKING_STATUSES = ('pending', 'confirmed', 'cancelled', 'completed')
# Bookings in these statuses keep their slot reserved.
ACTIVE_BOOKING_STATUSES = ('pending', 'confirmed')


class Booking(Base):
    """Represents a customer booking against one time slot."""
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    slot_id = Column(String(36), ForeignKey("time_slots.id"), nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    customer_email = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    phone = Column(String)
    address = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)
    notes = Column(String)
    status = Column(String, nullable=False, default='pending')
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
