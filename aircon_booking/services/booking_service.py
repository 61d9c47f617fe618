"""
Booking request handling: validated payloads in, one slot reservation per booking.
"""
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aircon_booking.core import config
from aircon_booking.core.errors import (
    BookingError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    ValidationFailedError,
)
from aircon_booking.core.timeutils import utcnow
from aircon_booking.models.booking import Booking
from aircon_booking.models.service import Service
from aircon_booking.services.availability_store import AvailabilityStore

logger = logging.getLogger(__name__)

# Statuses a booking may move to from each status.
STATUS_TRANSITIONS = {
    'pending': {'confirmed', 'cancelled'},
    'confirmed': {'completed', 'cancelled'},
    'cancelled': set(),
    'completed': set(),
}


class BookingService:
    def __init__(self, db: Session):
        self.db = db
        self.store = AvailabilityStore(db, autocommit=False)

    def _load(self, booking_id: str) -> Booking:
        try:
            booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        except SQLAlchemyError as exc:
            logger.exception('Database error loading booking %s', booking_id)
            raise ServerError() from exc

        if booking is None:
            logger.warning('Booking %s not found', booking_id)
            raise NotFoundError('Booking', booking_id)
        return booking

    def create_booking(
        self,
        *,
        slot_id: str,
        service_id: str,
        customer_email: str,
        customer_name: str,
        address: str,
        postal_code: str,
        phone: str | None = None,
        notes: str | None = None,
    ) -> Booking:
        logger.info('Creating booking for slot %s (service %s)', slot_id, service_id)
        try:
            service = self.db.get(Service, service_id)
            if service is None or not service.is_active:
                raise NotFoundError('Service', service_id)

            slot = self.store.get_slot(slot_id)
            if slot.service_id != service_id:
                raise ValidationFailedError('Time slot does not belong to the requested service.')

            earliest_start = utcnow() + timedelta(minutes=config.BOOKING_MIN_LEAD_MINUTES)
            if slot.start_time < earliest_start:
                raise ValidationFailedError('Booking date must be in the future.')

            self.store.reserve(slot_id)
            booking = Booking(
                slot_id=slot_id,
                service_id=service_id,
                customer_email=customer_email,
                customer_name=customer_name,
                phone=phone,
                address=address,
                postal_code=postal_code,
                notes=notes,
                status='pending',
            )
            self.db.add(booking)
            self.db.commit()
            self.db.refresh(booking)
        except BookingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Database error creating booking for slot %s', slot_id)
            raise ServerError() from exc

        logger.info('Booking %s created for slot %s', booking.id, slot_id)
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        return self._load(booking_id)

    def list_bookings_by_email(self, customer_email: str) -> list[Booking]:
        try:
            return self.db.query(Booking).filter(
                Booking.customer_email == customer_email,
            ).order_by(Booking.created_at.desc(), Booking.id.asc()).all()
        except SQLAlchemyError as exc:
            logger.exception('Database error listing bookings for %s', customer_email)
            raise ServerError() from exc

    def update_booking_status(self, booking_id: str, new_status: str) -> Booking:
        """Move a booking to ``new_status``.

        The write only matches while the row still has the status that was
        checked, so a change made meanwhile by another request surfaces as a
        ConflictError instead of being overwritten. Cancelling frees the slot
        unless another active booking holds it.
        """
        booking = self._load(booking_id)
        current_status = booking.status
        if new_status not in STATUS_TRANSITIONS.get(current_status, set()):
            raise ValidationFailedError(f'Cannot change booking status from {current_status} to {new_status}.')

        try:
            updated = self.db.query(Booking).filter(
                Booking.id == booking_id,
                Booking.status == current_status,
            ).update(
                {Booking.status: new_status, Booking.updated_at: utcnow()},
                synchronize_session=False,
            )
            if updated == 0:
                logger.warning('Booking %s changed status while moving to %s', booking_id, new_status)
                raise ConflictError('Booking was changed by another request. Reload and try again.')

            if new_status == 'cancelled':
                try:
                    self.store.release(booking.slot_id)
                except ConflictError:
                    logger.warning('Slot %s stays reserved; another active booking holds it', booking.slot_id)

            self.db.commit()
            self.db.refresh(booking)
        except BookingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Database error updating status of booking %s', booking_id)
            raise ServerError() from exc

        logger.info('Booking %s moved from %s to %s', booking_id, current_status, new_status)
        return booking

    def cancel_booking(self, booking_id: str, customer_email: str) -> Booking:
        booking = self._load(booking_id)
        if booking.customer_email != customer_email:
            logger.warning('Rejected cancellation of booking %s by non-owner', booking_id)
            raise PermissionDeniedError('Only the customer who made this booking can cancel it.')
        return self.update_booking_status(booking_id, 'cancelled')
