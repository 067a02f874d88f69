from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.models.appointment import Appointment
from backend.models.patient import Patient
from backend.routes.common import (
    AppointmentResponse,
    ensure_database_ready,
    get_db,
    serialize_appointment,
    storage_unavailable,
    validate_status_filter,
)

router = APIRouter(tags=['patients'])


class CreatePatientRequest(BaseModel):
    name: str
    email: str
    phone: str | None = None
    date_of_birth: date | None = None
    address: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Email is required.')
        if '@' not in normalized:
            raise ValueError('Email must be a valid address.')
        return normalized

    @field_validator('phone', 'address')
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class PatientResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    date_of_birth: date | None = None
    address: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CreatePatientResponse(BaseModel):
    message: str
    patient: PatientResponse


@router.get('', response_model=list[PatientResponse])
def list_patients(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(Patient).order_by(Patient.name.asc()).all()
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/search/{search_query}', response_model=list[PatientResponse])
def search_patients(search_query: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    pattern = f'%{search_query.strip()}%'
    try:
        return db.query(Patient).filter(
            or_(Patient.name.ilike(pattern), Patient.email.ilike(pattern)),
        ).order_by(Patient.name.asc()).all()
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/{patient_id}', response_model=PatientResponse)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        patient = db.get(Patient, patient_id)
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc

    if not patient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Patient not found.',
        )

    return patient


@router.post('', response_model=CreatePatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(data: CreatePatientRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        existing_patient = db.query(Patient.id).filter(Patient.email == data.email).first()
        if existing_patient:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Email already exists.',
            )

        patient = Patient(
            name=data.name,
            email=data.email,
            phone=data.phone,
            date_of_birth=data.date_of_birth,
            address=data.address,
        )
        db.add(patient)
        db.commit()
        db.refresh(patient)

        return CreatePatientResponse(
            message='Patient created successfully',
            patient=PatientResponse.model_validate(patient),
        )
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Email already exists.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise storage_unavailable() from exc


@router.get('/{patient_id}/appointments', response_model=list[AppointmentResponse])
def list_patient_appointments(
    patient_id: int,
    appointment_status: str | None = Query(default=None, alias='status'),
    past: bool | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    validate_status_filter(appointment_status)

    try:
        query = db.query(Appointment).options(joinedload(Appointment.doctor)).filter(
            Appointment.patient_id == patient_id,
        )
        if appointment_status:
            query = query.filter(Appointment.status == appointment_status)
        if past is True:
            query = query.filter(Appointment.date < date.today())
        elif past is False:
            query = query.filter(Appointment.date >= date.today())

        appointments = query.order_by(Appointment.date.desc(), Appointment.time.asc()).all()
        return [serialize_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc
