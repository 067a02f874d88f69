from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.booking import booking
from backend.booking.availability import normalize_clock
from backend.booking.errors import BookingError, InvalidInput
from backend.booking.slots import list_available_slots
from backend.booking.store import SlotStore
from backend.core import config
from backend.models.appointment import SLOT_CANCELLED, SLOT_COMPLETED, SLOT_HELD, Appointment
from backend.routes.common import (
    AppointmentResponse,
    ensure_database_ready,
    get_db,
    http_error,
    serialize_appointment,
    storage_unavailable,
    validate_status_filter,
)

router = APIRouter(tags=['appointments'])


def _validate_clock(value: str) -> str:
    try:
        return normalize_clock(value)
    except InvalidInput as exc:
        raise ValueError(exc.detail) from exc


def _validate_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class BookAppointmentRequest(BaseModel):
    patient_id: int | None = None
    doctor_id: int | None = None
    appointment_date: date | None = Field(default=None, alias='date')
    time: str | None = None
    notes: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_clock(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _validate_notes(value)


class RescheduleAppointmentRequest(BaseModel):
    doctor_id: int | None = None
    new_date: date | None = Field(default=None, alias='date')
    new_time: str | None = Field(default=None, alias='time')
    notes: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('new_time')
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_clock(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _validate_notes(value)


class SlotResponse(BaseModel):
    id: int
    doctor_id: int
    date: date
    time: str
    status: str

    class Config:
        from_attributes = True


class BookAppointmentResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class RescheduleAppointmentResponse(BaseModel):
    message: str
    appointment_id: int


class MessageResponse(BaseModel):
    message: str


def _joined_appointments(db: Session):
    return db.query(Appointment).options(joinedload(Appointment.doctor), joinedload(Appointment.patient))


@router.get('/slots/available', response_model=list[SlotResponse])
def list_slots_for_doctor_date(
    doctor_id: int | None = Query(default=None),
    date: date | None = Query(default=None),
    include_booked: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    if doctor_id is None or date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing required query parameters: doctor_id, date',
        )

    ensure_database_ready()

    try:
        return list_available_slots(SlotStore(db), doctor_id, date, include_booked=include_booked)
    except BookingError as exc:
        raise http_error(exc) from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    appointment_status: str | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    validate_status_filter(appointment_status)

    try:
        query = _joined_appointments(db)
        if appointment_status:
            query = query.filter(Appointment.status == appointment_status)
        appointments = query.order_by(Appointment.date.desc(), Appointment.time.asc()).all()
        return [serialize_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/upcoming', response_model=list[AppointmentResponse])
def list_upcoming_appointments(
    patient_id: int | None = Query(default=None),
    doctor_id: int | None = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        today = date.today()
        window_end = today + timedelta(days=config.UPCOMING_WINDOW_DAYS)
        query = _joined_appointments(db).filter(
            Appointment.date >= today,
            Appointment.date <= window_end,
            Appointment.status == SLOT_HELD,
        )
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)

        appointments = query.order_by(Appointment.date.asc(), Appointment.time.asc()).limit(limit).all()
        return [serialize_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/past/all', response_model=list[AppointmentResponse])
def list_past_appointments(
    patient_id: int | None = Query(default=None),
    doctor_id: int | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = _joined_appointments(db).filter(
            Appointment.date < date.today(),
            Appointment.status.in_((SLOT_COMPLETED, SLOT_CANCELLED)),
        )
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)

        appointments = query.order_by(Appointment.date.desc(), Appointment.time.asc()).limit(limit).all()
        return [serialize_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc


@router.get('/{slot_id}', response_model=AppointmentResponse)
def get_appointment(slot_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointment = _joined_appointments(db).filter(Appointment.id == slot_id).first()
    except SQLAlchemyError as exc:
        raise storage_unavailable() from exc

    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )

    return serialize_appointment(appointment)


@router.post('', response_model=BookAppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(data: BookAppointmentRequest, db: Session = Depends(get_db)):
    if data.patient_id is None or data.doctor_id is None or data.appointment_date is None or data.time is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing required fields: patient_id, doctor_id, date, time',
        )

    ensure_database_ready()

    try:
        appointment = booking.book(
            SlotStore(db),
            patient_id=data.patient_id,
            doctor_id=data.doctor_id,
            on_date=data.appointment_date,
            time=data.time,
            notes=data.notes,
        )
        return BookAppointmentResponse(
            message='Appointment booked successfully',
            appointment=serialize_appointment(appointment),
        )
    except BookingError as exc:
        raise http_error(exc) from exc


@router.put('/{slot_id}', response_model=RescheduleAppointmentResponse)
@router.post('/{slot_id}/reschedule', response_model=RescheduleAppointmentResponse)
def reschedule_appointment(slot_id: int, data: RescheduleAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        target_id = booking.reschedule(
            SlotStore(db),
            slot_id,
            doctor_id=data.doctor_id,
            on_date=data.new_date,
            time=data.new_time,
            notes=data.notes,
        )
        return RescheduleAppointmentResponse(
            message='Appointment rescheduled successfully',
            appointment_id=target_id,
        )
    except BookingError as exc:
        raise http_error(exc) from exc


@router.patch('/{slot_id}/cancel', response_model=MessageResponse)
def cancel_appointment(slot_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        booking.cancel(SlotStore(db), slot_id)
        return MessageResponse(message='Appointment cancelled and slot freed successfully')
    except BookingError as exc:
        raise http_error(exc) from exc
