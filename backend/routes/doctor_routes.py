from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.models.appointment import Appointment
from backend.models.doctor import Doctor
from backend.routes.common import (
    AppointmentResponse,
    ensure_database_ready,
    get_db,
    serialize_appointment,
    storage_unavailable,
    validate_status_filter,
)

router = APIRouter(tags=['doctors'])


class DoctorResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    specialization: str | None = None
    experience: int | None = None
    availability: dict | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[DoctorResponse])
def list_doctors(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(Doctor).order_by(Doctor.name.asc()).all()
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/specialization/{specialization}', response_model=list[DoctorResponse])
def list_doctors_by_specialization(specialization: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(Doctor).filter(
            Doctor.specialization == specialization,
        ).order_by(Doctor.name.asc()).all()
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        doctor = db.get(Doctor, doctor_id)
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc

    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Doctor not found.',
        )

    return doctor


@router.get('/{doctor_id}/appointments', response_model=list[AppointmentResponse])
def list_doctor_appointments(
    doctor_id: int,
    appointment_status: str | None = Query(default=None, alias='status'),
    appointment_date: date | None = Query(default=None, alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    validate_status_filter(appointment_status)

    try:
        query = db.query(Appointment).options(joinedload(Appointment.patient)).filter(
            Appointment.doctor_id == doctor_id,
        )
        if appointment_status:
            query = query.filter(Appointment.status == appointment_status)
        if appointment_date:
            query = query.filter(Appointment.date == appointment_date)

        appointments = query.order_by(Appointment.date.desc(), Appointment.time.asc()).all()
        return [serialize_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc
