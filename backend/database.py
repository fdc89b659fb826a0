import logging
from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend.core import config
from backend.core.errors import PersistenceError


logger = logging.getLogger(__name__)

engine = create_engine(
    config.DATABASE_URL,
    pool_pre_ping=True,
    echo=config.DATABASE_ECHO,
    connect_args={'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {},
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(operation: str, session_factory=SessionLocal, **context) -> Iterator[Session]:
    """Run one logical operation inside a single transaction.

    Commits when the block exits normally and rolls back on any exception.
    The session is always closed. Storage failures are logged with the
    operation name and context and re-raised as ``PersistenceError``.
    """
    session = session_factory()
    try:
        with session.begin():
            yield session
    except SQLAlchemyError as exc:
        logger.exception('Persistence failure during %s (%s)', operation, context)
        raise PersistenceError() from exc
    finally:
        session.close()


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_faculty_created ON appointments(faculty_id, created_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_student_created ON appointments(student_id, created_at)')
            )

        _appointment_schema_checked = True
