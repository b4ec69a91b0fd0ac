from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from booking_backend.core import config


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.SQL_ECHO,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False


def ensure_booking_schema(bind=None) -> None:
    """Create the booking indexes the admission check relies on.

    ``ux_bookings_org_time`` is the last line of defence when two requests
    pass the conflict check for the same interval at the same time.
    """
    global _booking_schema_checked

    if _booking_schema_checked and bind is None:
        return

    with _schema_lock:
        if _booking_schema_checked and bind is None:
            return

        target = bind or engine
        inspector = inspect(target)

        if 'bookings' not in inspector.get_table_names():
            if bind is None:
                _booking_schema_checked = True
            return

        with target.begin() as connection:
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS ux_bookings_org_time '
                    'ON bookings(organization_id, starts_at, ends_at) '
                    "WHERE status != 'CANCELLED'"
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_bookings_org_status ON bookings(organization_id, status)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_blackouts_org_range ON blackouts(organization_id, starts_at, ends_at)')
            )

        if bind is None:
            _booking_schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
