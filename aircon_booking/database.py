from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from aircon_booking.core import config


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
    **_engine_options(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_time_slot_schema_checked = False
_booking_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_time_slot_schema() -> None:
    global _time_slot_schema_checked

    if _time_slot_schema_checked:
        return

    with _schema_lock:
        if _time_slot_schema_checked:
            return

        if 'time_slots' not in inspect(engine).get_table_names():
            _time_slot_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_time_slots_service_start ON time_slots(service_id, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_time_slots_available_start ON time_slots(is_available, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_time_slots_technician_start ON time_slots(technician_id, start_time)')
            )

        _time_slot_schema_checked = True


def ensure_booking_schema() -> None:
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        if 'bookings' not in inspect(engine).get_table_names():
            _booking_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_bookings_email_created ON bookings(customer_email, created_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_bookings_slot_status ON bookings(slot_id, status)')
            )

        _booking_schema_checked = True
