from datetime import date, datetime

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from backend import database
from backend.booking.errors import BookingError, StorageError
from backend.models.appointment import SLOT_STATUSES, Appointment


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int | None = None
    date: date
    time: str
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    doctor_name: str | None = None
    doctor_specialization: str | None = None
    doctor_email: str | None = None
    doctor_phone: str | None = None
    patient_name: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None


def ensure_database_ready() -> None:
    try:
        database.ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=StorageError.detail,
        ) from exc


def get_db():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def http_error(exc: BookingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


def storage_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=StorageError.detail,
    )


def validate_status_filter(value: str | None) -> None:
    if value and value not in SLOT_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Unknown appointment status. Expected one of: {", ".join(SLOT_STATUSES)}.',
        )


def serialize_appointment(appointment: Appointment) -> AppointmentResponse:
    doctor = appointment.doctor
    patient = appointment.patient

    return AppointmentResponse(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        date=appointment.date,
        time=appointment.time,
        status=appointment.status,
        notes=appointment.notes,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
        doctor_name=doctor.name if doctor else None,
        doctor_specialization=doctor.specialization if doctor else None,
        doctor_email=doctor.email if doctor else None,
        doctor_phone=doctor.phone if doctor else None,
        patient_name=patient.name if patient else None,
        patient_email=patient.email if patient else None,
        patient_phone=patient.phone if patient else None,
    )
