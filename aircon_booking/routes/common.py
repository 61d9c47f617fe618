from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from aircon_booking.core.errors import MSG_DATABASE_UNAVAILABLE
from aircon_booking.database import ensure_booking_schema, ensure_time_slot_schema


def ensure_database_ready() -> None:
    try:
        ensure_time_slot_schema()
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=MSG_DATABASE_UNAVAILABLE,
        ) from exc


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Email is required.')
    if '@' not in normalized:
        raise ValueError('Email address is invalid.')
    return normalized
