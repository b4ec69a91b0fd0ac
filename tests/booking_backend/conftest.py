import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from booking_backend.database import Base, ensure_booking_schema  # noqa: E402
from booking_backend.models.availability_template import AvailabilityTemplate  # noqa: E402
from booking_backend.models.blackout import Blackout  # noqa: E402
from booking_backend.models.booking import Booking  # noqa: E402
from booking_backend.models.organization import Organization  # noqa: E402
from booking_backend.models.service import Service  # noqa: E402

TABLES = [
    Organization.__table__,
    Service.__table__,
    AvailabilityTemplate.__table__,
    Blackout.__table__,
    Booking.__table__,
]


@pytest.fixture
def booking_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    ensure_booking_schema(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def booking_db(booking_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=booking_engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clinic(booking_db):
    """Prague organization open Mondays 09:00-10:00 with a 30 minute service."""
    organization = Organization(name='Clinic', slug='clinic', timezone='Europe/Prague')
    booking_db.add(organization)
    booking_db.flush()

    service = Service(organization_id=organization.id, name='Consultation', duration_min=30, is_active=True)
    template = AvailabilityTemplate(
        organization_id=organization.id,
        weekday=1,
        start_minutes=540,
        end_minutes=600,
        slot_step_min=30,
    )
    booking_db.add_all([service, template])
    booking_db.commit()
    booking_db.refresh(organization)
    booking_db.refresh(service)

    return organization, service


@pytest.fixture
def make_booking(booking_db):
    def _make_booking(organization_id, service_id, starts_at: datetime, ends_at: datetime, status='CONFIRMED'):
        booking = Booking(
            organization_id=organization_id,
            service_id=service_id,
            customer_name='Jana Novak',
            customer_email='jana@example.com',
            starts_at=starts_at,
            ends_at=ends_at,
            status=status,
        )
        booking_db.add(booking)
        booking_db.commit()
        booking_db.refresh(booking)
        return booking

    return _make_booking
