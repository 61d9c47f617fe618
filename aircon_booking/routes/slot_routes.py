from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from aircon_booking.auth.dependencies import require_admin
from aircon_booking.core.errors import BookingError, to_http_exception
from aircon_booking.database import get_db
from aircon_booking.models.user import User
from aircon_booking.routes.common import ensure_database_ready
from aircon_booking.services.availability_store import AvailabilityStore

router = APIRouter(tags=['slots'])


class CreateSlotRequest(BaseModel):
    service_id: str
    start_time: datetime
    end_time: datetime
    technician_id: str | None = None

    @field_validator('service_id')
    @classmethod
    def validate_service_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service ID is required.')
        return normalized

    @field_validator('technician_id')
    @classmethod
    def validate_technician_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class TimeSlotResponse(BaseModel):
    id: str
    service_id: str
    technician_id: str | None = None
    start_time: datetime
    end_time: datetime
    is_available: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/slots', response_model=TimeSlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: CreateSlotRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    del admin
    ensure_database_ready()

    try:
        return AvailabilityStore(db).create_slot(
            start_time=data.start_time,
            end_time=data.end_time,
            service_id=data.service_id,
            technician_id=data.technician_id,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/slots/available', response_model=list[TimeSlotResponse])
def list_available_slots(
    service_id: str = Query(...),
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    db: Session = Depends(get_db),
):
    normalized_service_id = service_id.strip()
    if not normalized_service_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Service ID is required.',
        )

    ensure_database_ready()

    try:
        return AvailabilityStore(db).list_available(normalized_service_id, start_date, end_date)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.get('/slots/{slot_id}', response_model=TimeSlotResponse)
def get_slot(slot_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AvailabilityStore(db).get_slot(slot_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/slots/{slot_id}/reserve', response_model=TimeSlotResponse)
def reserve_slot(
    slot_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    del admin
    ensure_database_ready()

    try:
        return AvailabilityStore(db).reserve(slot_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/slots/{slot_id}/release', response_model=TimeSlotResponse)
def release_slot(
    slot_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    del admin
    ensure_database_ready()

    try:
        return AvailabilityStore(db).release(slot_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
