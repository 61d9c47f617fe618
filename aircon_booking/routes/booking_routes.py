import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from aircon_booking.auth.dependencies import require_admin
from aircon_booking.core import config
from aircon_booking.core.errors import BookingError, to_http_exception
from aircon_booking.database import get_db
from aircon_booking.models.booking import BOOKING_STATUSES
from aircon_booking.models.user import User
from aircon_booking.routes.common import ensure_database_ready, normalize_email
from aircon_booking.services.booking_service import BookingService

router = APIRouter(tags=['bookings'])

POSTAL_CODE_PATTERN = re.compile(r'^\d{6}$')
PHONE_PATTERN = re.compile(r'^\+?[\d\s-]{8,20}$')


def _required_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    return normalized


class CreateBookingRequest(BaseModel):
    slot_id: str
    service_id: str
    customer_email: str
    customer_name: str
    address: str
    postal_code: str
    phone: str | None = None
    notes: str | None = None

    @field_validator('slot_id')
    @classmethod
    def validate_slot_id(cls, value: str) -> str:
        return _required_text(value, 'Slot ID')

    @field_validator('service_id')
    @classmethod
    def validate_service_id(cls, value: str) -> str:
        return _required_text(value, 'Service ID')

    @field_validator('customer_email')
    @classmethod
    def validate_customer_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('customer_name')
    @classmethod
    def validate_customer_name(cls, value: str) -> str:
        return _required_text(value, 'Customer name')

    @field_validator('address')
    @classmethod
    def validate_address(cls, value: str) -> str:
        return _required_text(value, 'Address')

    @field_validator('postal_code')
    @classmethod
    def validate_postal_code(cls, value: str) -> str:
        normalized = value.strip()
        if not POSTAL_CODE_PATTERN.match(normalized):
            raise ValueError('Postal code must be 6 digits.')
        return normalized

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized = value.strip()
        if not PHONE_PATTERN.match(normalized):
            raise ValueError('Phone number is invalid.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_NOTES_LENGTH:
            raise ValueError(f'Notes cannot exceed {config.MAX_NOTES_LENGTH} characters.')

        return normalized


class UpdateBookingStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in BOOKING_STATUSES:
            raise ValueError('Invalid booking status.')
        return normalized


class BookingResponse(BaseModel):
    id: str
    slot_id: str
    service_id: str
    customer_email: str
    customer_name: str
    phone: str | None = None
    address: str
    postal_code: str
    notes: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/bookings', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(data: CreateBookingRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return BookingService(db).create_booking(**data.model_dump())
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/bookings', response_model=list[BookingResponse])
def list_bookings(email: str = Query(...), db: Session = Depends(get_db)):
    try:
        normalized_email = normalize_email(email)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ensure_database_ready()

    try:
        return BookingService(db).list_bookings_by_email(normalized_email)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/bookings/{booking_id}', response_model=BookingResponse)
def get_booking(booking_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return BookingService(db).get_booking(booking_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/bookings/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    data: UpdateBookingStatusRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    del admin
    ensure_database_ready()

    try:
        return BookingService(db).update_booking_status(booking_id, data.status)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/bookings/{booking_id}', response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    customer_email: str = Query(...),
    db: Session = Depends(get_db),
):
    try:
        normalized_email = normalize_email(customer_email)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ensure_database_ready()

    try:
        return BookingService(db).cancel_booking(booking_id, normalized_email)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
