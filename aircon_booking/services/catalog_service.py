import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from aircon_booking.core.errors import ConflictError, ServerError
from aircon_booking.models.service import Service
from aircon_booking.models.technician import Technician

logger = logging.getLogger(__name__)


def list_active_services(db: Session) -> list[Service]:
    try:
        return db.query(Service).filter(Service.is_active.is_(True)).order_by(Service.name.asc()).all()
    except SQLAlchemyError as exc:
        logger.exception('Database error listing services')
        raise ServerError() from exc


def create_service(db: Session, name: str, duration_minutes: int, description: str | None = None) -> Service:
    service = Service(name=name, description=description, duration_minutes=duration_minutes, is_active=True)
    try:
        db.add(service)
        db.commit()
        db.refresh(service)
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Service %r already exists', name)
        raise ConflictError('A service with this name already exists.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database error creating service %r', name)
        raise ServerError() from exc

    logger.info('Service %s created (%s)', service.id, name)
    return service


def create_technician(db: Session, name: str, email: str | None = None) -> Technician:
    technician = Technician(name=name, email=email, is_active=True)
    try:
        db.add(technician)
        db.commit()
        db.refresh(technician)
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError('A technician with this email already exists.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database error creating technician %r', name)
        raise ServerError() from exc

    logger.info('Technician %s created', technician.id)
    return technician
