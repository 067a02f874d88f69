"""Insert the demo doctors and patients if they are missing.

Usage:
    python -m backend.seed
"""
import logging
from datetime import date

from sqlalchemy.orm import Session

from backend.database import Base, SessionLocal, engine
from backend.models.appointment import Appointment  # noqa: F401
from backend.models.doctor import Doctor
from backend.models.patient import Patient

logger = logging.getLogger(__name__)


def _weekdays(start: str, end: str) -> dict:
    return {day: {'start': start, 'end': end} for day in ('mon', 'tue', 'wed', 'thu', 'fri')}


# A day off is written as start >= end; a null day falls back to the default hours.
DAY_OFF = {'start': '00:00', 'end': '00:00'}

SAMPLE_DOCTORS = [
    {
        'name': 'Dr. Sarah Johnson',
        'email': 'sarah.johnson@hospital.com',
        'phone': '+1-555-0101',
        'specialization': 'Cardiology',
        'experience': 15,
        'availability': {
            'slotLength': 30,
            **_weekdays('09:00', '17:00'),
            'sat': {'start': '10:00', 'end': '14:00'},
            'sun': DAY_OFF,
        },
    },
    {
        'name': 'Dr. Michael Chen',
        'email': 'michael.chen@hospital.com',
        'phone': '+1-555-0102',
        'specialization': 'Neurology',
        'experience': 12,
        'availability': {
            'slotLength': 20,
            **_weekdays('10:00', '16:00'),
            'sat': DAY_OFF,
            'sun': DAY_OFF,
        },
    },
    {
        'name': 'Dr. Emily Davis',
        'email': 'emily.davis@hospital.com',
        'phone': '+1-555-0103',
        'specialization': 'Pediatrics',
        'experience': 8,
        'availability': {
            'slotLength': 30,
            'mon': {'start': '09:00', 'end': '15:00'},
            'tue': {'start': '09:00', 'end': '15:00'},
            'wed': {'start': '12:00', 'end': '18:00'},
            'thu': {'start': '09:00', 'end': '15:00'},
            'fri': {'start': '09:00', 'end': '15:00'},
            'sat': {'start': '10:00', 'end': '13:00'},
            'sun': DAY_OFF,
        },
    },
]

SAMPLE_PATIENTS = [
    {
        'name': 'John Smith',
        'email': 'john.smith@email.com',
        'phone': '+1-555-0201',
        'date_of_birth': date(1985, 3, 15),
    },
    {
        'name': 'Maria Garcia',
        'email': 'maria.garcia@email.com',
        'phone': '+1-555-0202',
        'date_of_birth': date(1990, 7, 22),
    },
]


def seed_sample_data(db: Session) -> int:
    """Add any sample doctor or patient whose email is not yet registered."""
    added = 0

    existing_doctor_emails = {email for (email,) in db.query(Doctor.email).all()}
    for doctor in SAMPLE_DOCTORS:
        if doctor['email'] not in existing_doctor_emails:
            db.add(Doctor(**doctor))
            added += 1

    existing_patient_emails = {email for (email,) in db.query(Patient.email).all()}
    for patient in SAMPLE_PATIENTS:
        if patient['email'] not in existing_patient_emails:
            db.add(Patient(**patient))
            added += 1

    db.commit()
    logger.info('Sample data ensured (%d records added)', added)
    return added


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_sample_data(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
