from datetime import timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from aircon_booking.core.errors import ConflictError, NotFoundError, ServerError, ValidationFailedError
from aircon_booking.services.availability_store import AvailabilityStore


def _hours(count: int) -> timedelta:
    return timedelta(hours=count)


def test_create_slot_starts_available(db, aircon_service, future_start) -> None:
    slot = AvailabilityStore(db).create_slot(future_start, future_start + _hours(1), aircon_service.id)

    assert slot.id
    assert slot.is_available is True
    assert slot.service_id == aircon_service.id
    assert slot.technician_id is None


def test_create_slot_rejects_end_not_after_start(db, aircon_service, future_start) -> None:
    with pytest.raises(ValidationFailedError) as exception_info:
        AvailabilityStore(db).create_slot(future_start, future_start, aircon_service.id)

    assert exception_info.value.detail == 'End time must be after start time.'


def test_create_slot_rejects_unknown_service(db, future_start) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        AvailabilityStore(db).create_slot(future_start, future_start + _hours(1), 'missing-service')

    assert exception_info.value.status_code == 404


def test_create_slot_rejects_unknown_technician(db, aircon_service, future_start) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        AvailabilityStore(db).create_slot(
            future_start, future_start + _hours(1), aircon_service.id, technician_id='missing-tech'
        )

    assert exception_info.value.resource == 'Technician'


def test_create_slot_rejects_overlap_for_same_technician(db, aircon_service, technician, future_start) -> None:
    store = AvailabilityStore(db)
    store.create_slot(future_start, future_start + _hours(2), aircon_service.id, technician.id)

    with pytest.raises(ConflictError):
        store.create_slot(future_start + _hours(1), future_start + _hours(3), aircon_service.id, technician.id)


def test_create_slot_allows_adjacent_and_other_technician_windows(
    db, aircon_service, technician, future_start
) -> None:
    store = AvailabilityStore(db)
    store.create_slot(future_start, future_start + _hours(1), aircon_service.id, technician.id)

    adjacent = store.create_slot(future_start + _hours(1), future_start + _hours(2), aircon_service.id, technician.id)
    unassigned = store.create_slot(future_start, future_start + _hours(1), aircon_service.id)

    assert adjacent.is_available is True
    assert unassigned.technician_id is None


def test_list_available_is_sorted_and_excludes_reserved(db, aircon_service, future_start) -> None:
    store = AvailabilityStore(db)
    late = store.create_slot(future_start + _hours(4), future_start + _hours(5), aircon_service.id)
    early = store.create_slot(future_start, future_start + _hours(1), aircon_service.id)
    reserved = store.create_slot(future_start + _hours(2), future_start + _hours(3), aircon_service.id)
    store.reserve(reserved.id)

    slots = store.list_available(aircon_service.id, future_start - _hours(1), future_start + _hours(6))

    assert [slot.id for slot in slots] == [early.id, late.id]
    assert all(slot.is_available for slot in slots)
    assert [slot.start_time for slot in slots] == sorted(slot.start_time for slot in slots)


def test_list_available_includes_slots_intersecting_range_edges(db, aircon_service, future_start) -> None:
    store = AvailabilityStore(db)
    straddling = store.create_slot(future_start, future_start + _hours(2), aircon_service.id)
    store.create_slot(future_start + _hours(5), future_start + _hours(6), aircon_service.id)

    slots = store.list_available(aircon_service.id, future_start + _hours(1), future_start + _hours(3))

    assert [slot.id for slot in slots] == [straddling.id]


def test_list_available_rejects_inverted_range(db, aircon_service, future_start) -> None:
    with pytest.raises(ValidationFailedError):
        AvailabilityStore(db).list_available(aircon_service.id, future_start, future_start - _hours(1))


def test_reserve_then_release_restores_availability(db, aircon_service, future_start) -> None:
    store = AvailabilityStore(db)
    slot = store.create_slot(future_start, future_start + _hours(1), aircon_service.id)

    reserved = store.reserve(slot.id)
    assert reserved.is_available is False

    released = store.release(slot.id)
    assert released.is_available is True


def test_reserve_unknown_slot_raises_not_found(db) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        AvailabilityStore(db).reserve('does-not-exist')

    assert exception_info.value.detail == 'Time slot with ID does-not-exist not found.'


def test_release_unknown_slot_raises_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        AvailabilityStore(db).release('does-not-exist')


def test_second_reservation_of_same_slot_is_rejected(session_factory, aircon_service, future_start) -> None:
    first_session = session_factory()
    second_session = session_factory()
    try:
        slot = AvailabilityStore(first_session).create_slot(
            future_start, future_start + _hours(1), aircon_service.id
        )
        # Both sessions saw the slot as available before either reserved it.
        assert AvailabilityStore(second_session).get_slot(slot.id).is_available is True

        AvailabilityStore(first_session).reserve(slot.id)
        with pytest.raises(ConflictError):
            AvailabilityStore(second_session).reserve(slot.id)
    finally:
        first_session.close()
        second_session.close()


def test_release_of_available_slot_is_noop(db, aircon_service, future_start) -> None:
    store = AvailabilityStore(db)
    slot = store.create_slot(future_start, future_start + _hours(1), aircon_service.id)

    assert store.release(slot.id).is_available is True


def test_database_failure_is_reported_as_server_error(db, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_query(*_args, **_kwargs):
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    monkeypatch.setattr(db, 'query', broken_query)

    with pytest.raises(ServerError) as exception_info:
        AvailabilityStore(db).get_slot('any')

    assert exception_info.value.status_code == 503


def test_list_available_includes_slots_touching_range_bounds(db, aircon_service, future_start) -> None:
    store = AvailabilityStore(db)
    ends_at_start = store.create_slot(future_start + _hours(1), future_start + _hours(2), aircon_service.id)
    starts_at_end = store.create_slot(future_start + _hours(4), future_start + _hours(5), aircon_service.id)
    store.create_slot(future_start + _hours(6), future_start + _hours(7), aircon_service.id)
    store.create_slot(future_start - _hours(1), future_start, aircon_service.id)

    slots = store.list_available(aircon_service.id, future_start + _hours(2), future_start + _hours(4))

    assert [slot.id for slot in slots] == [ends_at_start.id, starts_at_end.id]


def test_timezone_aware_times_are_stored_and_queried_as_utc(db, aircon_service, future_start) -> None:
    singapore = timezone(timedelta(hours=8))
    local_start = (future_start + _hours(8)).replace(tzinfo=singapore)
    store = AvailabilityStore(db)

    slot = store.create_slot(local_start, local_start + _hours(1), aircon_service.id)

    assert slot.start_time == future_start
    assert slot.start_time.tzinfo is None
    assert slot.end_time == future_start + _hours(1)

    slots = store.list_available(
        aircon_service.id,
        local_start - timedelta(minutes=30),
        local_start + timedelta(minutes=30),
    )
    assert [item.id for item in slots] == [slot.id]


def test_unassigned_slots_form_their_own_overlap_pool(db, aircon_service, technician, future_start) -> None:
    store = AvailabilityStore(db)
    assigned = store.create_slot(future_start, future_start + _hours(1), aircon_service.id, technician.id)

    unassigned = store.create_slot(future_start, future_start + _hours(1), aircon_service.id)

    assert assigned.technician_id == technician.id
    assert unassigned.technician_id is None
    with pytest.raises(ConflictError) as exception_info:
        store.create_slot(
            future_start + timedelta(minutes=30), future_start + timedelta(minutes=90), aircon_service.id
        )
    assert exception_info.value.detail == 'Time slot overlaps with an existing slot.'
