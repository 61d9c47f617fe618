"""
Availability store: create, query, reserve and release time slots.

The store is constructed with an explicit session. With ``autocommit`` left on,
every mutating call commits on its own; callers that need several writes in one
transaction (booking creation) pass ``autocommit=False`` and commit themselves.
"""
import logging
from datetime import datetime

from sqlalchemy import exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aircon_booking.core.errors import ConflictError, NotFoundError, ServerError, ValidationFailedError
from aircon_booking.core.timeutils import to_naive_utc, utcnow
from aircon_booking.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from aircon_booking.models.service import Service
from aircon_booking.models.technician import Technician
from aircon_booking.models.time_slot import TimeSlot

logger = logging.getLogger(__name__)

TIME_SLOT_RESOURCE = 'Time slot'


class AvailabilityStore:
    def __init__(self, db: Session, autocommit: bool = True):
        self.db = db
        self.autocommit = autocommit

    def _commit(self) -> None:
        if self.autocommit:
            self.db.commit()

    def _database_failure(self, action: str, exc: SQLAlchemyError, **context) -> ServerError:
        self.db.rollback()
        logger.exception('Database error while %s (%s)', action, context)
        return ServerError()

    def create_slot(
        self,
        start_time: datetime,
        end_time: datetime,
        service_id: str,
        technician_id: str | None = None,
    ) -> TimeSlot:
        start_time = to_naive_utc(start_time)
        end_time = to_naive_utc(end_time)
        logger.info('Creating time slot for service %s from %s to %s', service_id, start_time, end_time)

        if end_time <= start_time:
            logger.warning('Rejected time slot with end %s not after start %s', end_time, start_time)
            raise ValidationFailedError('End time must be after start time.')

        try:
            if self.db.get(Service, service_id) is None:
                raise NotFoundError('Service', service_id)
            if technician_id is not None and self.db.get(Technician, technician_id) is None:
                raise NotFoundError('Technician', technician_id)

            overlap_query = self.db.query(TimeSlot).filter(
                TimeSlot.service_id == service_id,
                TimeSlot.start_time < end_time,
                TimeSlot.end_time > start_time,
            )
            if technician_id is None:
                overlap_query = overlap_query.filter(TimeSlot.technician_id.is_(None))
            else:
                overlap_query = overlap_query.filter(TimeSlot.technician_id == technician_id)

            if overlap_query.first() is not None:
                logger.warning('Time slot overlaps an existing slot for service %s', service_id)
                raise ConflictError('Time slot overlaps with an existing slot.')

            slot = TimeSlot(
                start_time=start_time,
                end_time=end_time,
                service_id=service_id,
                technician_id=technician_id,
                is_available=True,
            )
            self.db.add(slot)
            self.db.flush()
            self._commit()
            self.db.refresh(slot)
        except SQLAlchemyError as exc:
            raise self._database_failure('creating time slot', exc, service_id=service_id) from exc

        logger.info('Time slot %s created', slot.id)
        return slot

    def get_slot(self, slot_id: str) -> TimeSlot:
        try:
            slot = self.db.query(TimeSlot).filter(TimeSlot.id == slot_id).populate_existing().first()
        except SQLAlchemyError as exc:
            raise self._database_failure('loading time slot', exc, slot_id=slot_id) from exc

        if slot is None:
            logger.warning('Time slot %s not found', slot_id)
            raise NotFoundError(TIME_SLOT_RESOURCE, slot_id)
        return slot

    def list_available(self, service_id: str, start_date: datetime, end_date: datetime) -> list[TimeSlot]:
        """Available slots of a service whose window intersects [start_date, end_date], earliest first."""
        start_date = to_naive_utc(start_date)
        end_date = to_naive_utc(end_date)
        logger.info('Listing available slots for service %s between %s and %s', service_id, start_date, end_date)

        if start_date > end_date:
            raise ValidationFailedError('Start date must not be after end date.')

        try:
            if self.db.get(Service, service_id) is None:
                raise NotFoundError('Service', service_id)

            slots = self.db.query(TimeSlot).filter(
                TimeSlot.service_id == service_id,
                TimeSlot.is_available.is_(True),
                TimeSlot.start_time <= end_date,
                TimeSlot.end_time >= start_date,
            ).order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc()).all()
        except SQLAlchemyError as exc:
            raise self._database_failure('listing time slots', exc, service_id=service_id) from exc

        logger.info('Found %d available slots for service %s', len(slots), service_id)
        return slots

    def reserve(self, slot_id: str) -> TimeSlot:
        """Mark a slot unavailable.

        The update only matches while the slot is still available, so of two
        concurrent reservations exactly one changes a row; the other gets a
        ConflictError.
        """
        logger.info('Reserving time slot %s', slot_id)
        try:
            updated = self.db.query(TimeSlot).filter(
                TimeSlot.id == slot_id,
                TimeSlot.is_available.is_(True),
            ).update(
                {TimeSlot.is_available: False, TimeSlot.updated_at: utcnow()},
                synchronize_session=False,
            )
            if updated == 0:
                found = self.db.query(TimeSlot.id).filter(TimeSlot.id == slot_id).first()
                if found is None:
                    logger.warning('Time slot %s not found', slot_id)
                    raise NotFoundError(TIME_SLOT_RESOURCE, slot_id)
                logger.warning('Time slot %s is already reserved', slot_id)
                raise ConflictError('Time slot is no longer available.')
            self._commit()
        except SQLAlchemyError as exc:
            raise self._database_failure('reserving time slot', exc, slot_id=slot_id) from exc

        logger.info('Time slot %s reserved', slot_id)
        return self.get_slot(slot_id)

    def release(self, slot_id: str) -> TimeSlot:
        """Mark a slot available again.

        A slot held by a pending or confirmed booking is refused with a
        ConflictError; the booking has to be cancelled instead.
        """
        logger.info('Releasing time slot %s', slot_id)
        held_by_booking = exists().where(
            Booking.slot_id == slot_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        try:
            updated = self.db.query(TimeSlot).filter(
                TimeSlot.id == slot_id,
                ~held_by_booking,
            ).update(
                {TimeSlot.is_available: True, TimeSlot.updated_at: utcnow()},
                synchronize_session=False,
            )
            if updated == 0:
                found = self.db.query(TimeSlot.id).filter(TimeSlot.id == slot_id).first()
                if found is None:
                    logger.warning('Time slot %s not found', slot_id)
                    raise NotFoundError(TIME_SLOT_RESOURCE, slot_id)
                logger.warning('Time slot %s is held by an active booking', slot_id)
                raise ConflictError('Time slot is held by an active booking.')
            self._commit()
        except SQLAlchemyError as exc:
            raise self._database_failure('releasing time slot', exc, slot_id=slot_id) from exc

        logger.info('Time slot %s released', slot_id)
        return self.get_slot(slot_id)
