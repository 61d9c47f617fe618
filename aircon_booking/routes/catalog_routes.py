from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from aircon_booking.auth.dependencies import require_admin
from aircon_booking.core.errors import BookingError, to_http_exception
from aircon_booking.database import get_db
from aircon_booking.models.user import User
from aircon_booking.routes.common import ensure_database_ready, normalize_email
from aircon_booking.services import catalog_service

router = APIRouter(tags=['catalog'])

MIN_SERVICE_DURATION_MINUTES = 30
MAX_SERVICE_DURATION_MINUTES = 480


class CreateServiceRequest(BaseModel):
    name: str
    duration_minutes: int = 60
    description: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service name is required.')
        return normalized

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if not MIN_SERVICE_DURATION_MINUTES <= value <= MAX_SERVICE_DURATION_MINUTES:
            raise ValueError(
                f'Duration must be between {MIN_SERVICE_DURATION_MINUTES} and {MAX_SERVICE_DURATION_MINUTES} minutes.'
            )
        return value


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    duration_minutes: int
    is_active: bool

    class Config:
        from_attributes = True


class CreateTechnicianRequest(BaseModel):
    name: str
    email: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Technician name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_email(value)


class TechnicianResponse(BaseModel):
    id: str
    name: str
    email: str | None = None
    is_active: bool

    class Config:
        from_attributes = True


@router.get('/services', response_model=list[ServiceResponse])
def list_services(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return catalog_service.list_active_services(db)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/services', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: CreateServiceRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    del admin
    ensure_database_ready()

    try:
        return catalog_service.create_service(db, data.name, data.duration_minutes, data.description)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post('/technicians', response_model=TechnicianResponse, status_code=status.HTTP_201_CREATED)
def create_technician(
    data: CreateTechnicianRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    del admin
    ensure_database_ready()

    try:
        return catalog_service.create_technician(db, data.name, data.email)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
