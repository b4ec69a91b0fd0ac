from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from booking_backend.models.blackout import Blackout
from booking_backend.scheduling.slots import generate_slots
from booking_backend.scheduling.storage import SqlAlchemyStorage, from_naive_utc, to_naive_utc
from booking_backend.scheduling.types import BookingStatus, WeeklyTemplate


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_naive_utc_conversions_round_trip_instants() -> None:
    assert to_naive_utc(utc(2026, 1, 5, 8, 0)) == datetime(2026, 1, 5, 8, 0)
    assert from_naive_utc(datetime(2026, 1, 5, 8, 0)) == utc(2026, 1, 5, 8, 0)


def test_storage_reads_organization_and_templates(booking_db, clinic) -> None:
    organization, service = clinic
    storage = SqlAlchemyStorage(booking_db)

    assert storage.get_organization_by_slug(' Clinic ').timezone == 'Europe/Prague'
    assert storage.get_organization(organization.id).slug == 'clinic'
    assert storage.get_organization(999) is None
    assert storage.get_service(service.id).duration_min == 30
    assert [
        (template.weekday, template.start_minutes, template.end_minutes, template.slot_step_min)
        for template in storage.get_availability_templates(organization.id)
    ] == [(1, 540, 600, 30)]
    assert isinstance(storage.get_availability_templates(organization.id)[0], WeeklyTemplate)


def test_storage_returns_aware_blackouts(booking_db, clinic) -> None:
    organization, _ = clinic
    booking_db.add(
        Blackout(
            organization_id=organization.id,
            starts_at=datetime(2026, 1, 5, 8, 15),
            ends_at=datetime(2026, 1, 5, 8, 45),
            reason='Staff meeting',
        )
    )
    booking_db.commit()

    blackouts = SqlAlchemyStorage(booking_db).get_blackouts(organization.id)

    assert [(blackout.starts_at, blackout.reason) for blackout in blackouts] == [(utc(2026, 1, 5, 8, 15), 'Staff meeting')]


def test_get_bookings_includes_bookings_started_before_the_range(booking_db, clinic, make_booking) -> None:
    organization, service = clinic
    early = make_booking(organization.id, service.id, datetime(2026, 1, 4, 22, 0), datetime(2026, 1, 5, 0, 30))
    inside = make_booking(organization.id, service.id, datetime(2026, 1, 5, 8, 0), datetime(2026, 1, 5, 8, 30))
    make_booking(organization.id, service.id, datetime(2026, 1, 6, 8, 0), datetime(2026, 1, 6, 8, 30))
    make_booking(organization.id, service.id, datetime(2026, 1, 4, 22, 0), datetime(2026, 1, 4, 23, 0))

    bookings = SqlAlchemyStorage(booking_db).get_bookings(organization.id, utc(2026, 1, 4, 23, 0), utc(2026, 1, 5, 23, 0))

    assert [booking.id for booking in bookings] == [early.id, inside.id]
    assert bookings[1].starts_at == utc(2026, 1, 5, 8, 0)
    assert bookings[1].status == BookingStatus.CONFIRMED


def test_generate_slots_reads_through_sqlalchemy_storage(booking_db, clinic, make_booking) -> None:
    organization, service = clinic
    make_booking(organization.id, service.id, datetime(2026, 1, 5, 8, 0), datetime(2026, 1, 5, 8, 30))
    storage = SqlAlchemyStorage(booking_db)

    slots = generate_slots(
        organization.id,
        storage.get_service(service.id),
        datetime(2026, 1, 4, 23, 0, tzinfo=timezone.utc),
        datetime(2026, 1, 5, 23, 0, tzinfo=timezone.utc),
        organization.timezone,
        storage=storage,
        now=utc(2026, 1, 1, 0, 0),
    )

    assert [(slot.start, slot.available) for slot in slots] == [
        (utc(2026, 1, 5, 8, 0), False),
        (utc(2026, 1, 5, 8, 30), True),
    ]


def test_unique_index_rejects_second_active_booking_for_same_interval(booking_db, clinic, make_booking) -> None:
    organization, service = clinic
    make_booking(organization.id, service.id, datetime(2026, 1, 5, 8, 0), datetime(2026, 1, 5, 8, 30))

    with pytest.raises(IntegrityError):
        make_booking(organization.id, service.id, datetime(2026, 1, 5, 8, 0), datetime(2026, 1, 5, 8, 30))
    booking_db.rollback()


def test_unique_index_ignores_cancelled_bookings(booking_db, clinic, make_booking) -> None:
    organization, service = clinic
    make_booking(organization.id, service.id, datetime(2026, 1, 5, 8, 0), datetime(2026, 1, 5, 8, 30), status='CANCELLED')

    rebooked = make_booking(organization.id, service.id, datetime(2026, 1, 5, 8, 0), datetime(2026, 1, 5, 8, 30))

    assert rebooked.status == 'CONFIRMED'
