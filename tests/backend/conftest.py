import os
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.auth.jwt_handler import create_access_token  # noqa: E402
from backend.auth.permissions import Principal  # noqa: E402
from backend.database import Base, get_db  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models.enums import Mode, Role  # noqa: E402
from backend.models.user import User  # noqa: E402
from backend.routes.appointment_routes import get_appointment_service  # noqa: E402
from backend.services.appointment_service import AppointmentService  # noqa: E402

STUDENT_ID = 1
FACULTY_ID = 2
OTHER_FACULTY_ID = 3
ADMIN_ID = 50
OTHER_STUDENT_ID = 99


class RecordingConnection:
    """Stand-in for a WebSocket that records every JSON message it is sent."""

    def __init__(self, fail: bool = False) -> None:
        self.messages = []
        self.fail = fail

    async def send_json(self, payload) -> None:
        if self.fail:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.messages.append(payload)


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def users(session_factory):
    db = session_factory()
    db.add_all([
        User(id=STUDENT_ID, email='student@example.edu', first_name='Sam', last_name='Student',
             role=Role.STUDENT.value, mode=Mode.ONLINE.value),
        User(id=FACULTY_ID, email='grace@example.edu', first_name='Grace', last_name='Hopper',
             department='Computer Science', role=Role.FACULTY.value, mode=Mode.ONSITE.value),
        User(id=OTHER_FACULTY_ID, email='alan@example.edu', first_name='Alan', last_name='Turing',
             department='Mathematics', role=Role.FACULTY.value, mode=Mode.ONLINE.value),
        User(id=ADMIN_ID, email='registrar@example.edu', first_name='Rita', last_name='Registrar',
             role=Role.ADMIN.value, mode=Mode.ONSITE.value),
        User(id=OTHER_STUDENT_ID, email='other@example.edu', first_name='Olive', last_name='Other',
             role=Role.STUDENT.value, mode=Mode.ONLINE.value),
    ])
    db.commit()
    db.close()

    return SimpleNamespace(
        student=Principal(user_id=STUDENT_ID, role=Role.STUDENT),
        faculty=Principal(user_id=FACULTY_ID, role=Role.FACULTY),
        other_faculty=Principal(user_id=OTHER_FACULTY_ID, role=Role.FACULTY),
        admin=Principal(user_id=ADMIN_ID, role=Role.ADMIN),
        other_student=Principal(user_id=OTHER_STUDENT_ID, role=Role.STUDENT),
    )


@pytest.fixture
def service(session_factory, users):
    return AppointmentService(session_factory)


@pytest.fixture
def connection_factory():
    return RecordingConnection


@pytest.fixture
def client(session_factory, service):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_appointment_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def build(principal: Principal) -> dict:
        token = create_access_token(subject=str(principal.user_id))
        return {'Authorization': f'Bearer {token}'}

    return build
