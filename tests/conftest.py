import os
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.doctor import Doctor  # noqa: E402
from backend.models.patient import Patient  # noqa: E402

WEEKDAY_TEMPLATE = {
    'slotLength': 30,
    'mon': {'start': '09:00', 'end': '11:00'},
    'tue': {'start': '09:00', 'end': '11:00'},
    'wed': {'start': '09:00', 'end': '11:00'},
    'thu': {'start': '09:00', 'end': '11:00'},
    'fri': {'start': '09:00', 'end': '11:00'},
    'sat': {'start': '10:00', 'end': '10:00'},
    'sun': None,
}

NEXT_MONDAY = date.today() + timedelta(days=7 - date.today().weekday())
NEXT_SATURDAY = NEXT_MONDAY + timedelta(days=5)
NEXT_SUNDAY = NEXT_MONDAY + timedelta(days=6)


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.database.ensure_appointment_schema', lambda: None)


@pytest.fixture
def booking_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[Doctor.__table__, Patient.__table__, Appointment.__table__])
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, Patient.__table__, Doctor.__table__])
        engine.dispose()


@pytest.fixture
def booking_sessionmaker(booking_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=booking_engine)


@pytest.fixture
def booking_db(booking_sessionmaker):
    db = booking_sessionmaker()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_doctor(booking_db):
    def _make_doctor(email: str = 'house@hospital.com', availability: dict | None = None, **fields) -> Doctor:
        doctor = Doctor(
            name=fields.pop('name', 'Dr. Gregory House'),
            email=email,
            specialization=fields.pop('specialization', 'Diagnostics'),
            availability=WEEKDAY_TEMPLATE if availability is None else availability,
            **fields,
        )
        booking_db.add(doctor)
        booking_db.commit()
        booking_db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def make_patient(booking_db):
    def _make_patient(email: str = 'john.smith@email.com', name: str = 'John Smith') -> Patient:
        patient = Patient(name=name, email=email)
        booking_db.add(patient)
        booking_db.commit()
        booking_db.refresh(patient)
        return patient

    return _make_patient


@pytest.fixture
def next_monday() -> date:
    return NEXT_MONDAY


@pytest.fixture
def next_saturday() -> date:
    return NEXT_SATURDAY


@pytest.fixture
def next_sunday() -> date:
    return NEXT_SUNDAY
