"""Technician model definitions."""

from sqlalchemy import Boolean, Column, String

from aircon_booking.database import Base
from aircon_booking.models.time_slot import generate_id


class Technician(Base):
    """Represents a technician who can be assigned to slots."""
    __tablename__ = "technicians"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
