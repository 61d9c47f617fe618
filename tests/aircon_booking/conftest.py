import os
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from aircon_booking.core.timeutils import utcnow  # noqa: E402
from aircon_booking.database import Base  # noqa: E402
from aircon_booking.models.booking import Booking  # noqa: E402
from aircon_booking.models.service import Service  # noqa: E402
from aircon_booking.models.technician import Technician  # noqa: E402
from aircon_booking.models.time_slot import TimeSlot  # noqa: E402
from aircon_booking.models.user import User  # noqa: E402

TABLES = [User.__table__, Service.__table__, Technician.__table__, TimeSlot.__table__, Booking.__table__]


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def no_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    for module in ('slot_routes', 'booking_routes', 'catalog_routes'):
        monkeypatch.setattr(f'aircon_booking.routes.{module}.ensure_database_ready', lambda: None)


@pytest.fixture
def aircon_service(db) -> Service:
    service = Service(name='General servicing', duration_minutes=60, is_active=True)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def technician(db) -> Technician:
    tech = Technician(name='Ah Seng', email='ahseng@example.com', is_active=True)
    db.add(tech)
    db.commit()
    db.refresh(tech)
    return tech


@pytest.fixture
def future_start():
    return (utcnow() + timedelta(days=3)).replace(hour=9, minute=0, second=0, microsecond=0)
