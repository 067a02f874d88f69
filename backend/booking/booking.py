"""Booking, cancellation and rescheduling of appointment slots.

All three operations run as one unit of work on the store. Occupying a slot is
a conditional ``free -> held`` update, so two requests racing for the same
slot cannot both win; the loser gets ``SlotUnavailable``.
"""

import logging
from datetime import date

from backend.booking.availability import normalize_clock
from backend.booking.errors import (
    DoctorNotFound,
    InvalidState,
    PastDate,
    PatientDoubleBooked,
    PatientNotFound,
    SlotNotFound,
    SlotUnavailable,
)
from backend.booking.store import SlotStore
from backend.models.appointment import SLOT_FREE, SLOT_HELD, Appointment

logger = logging.getLogger(__name__)


def book(
    store: SlotStore,
    patient_id: int,
    doctor_id: int,
    on_date: date,
    time: str,
    notes: str | None = None,
    today: date | None = None,
) -> Appointment:
    today = today or date.today()
    if on_date < today:
        raise PastDate('Cannot book appointments in the past.')

    time = normalize_clock(time)

    with store.transaction():
        if store.get_doctor(doctor_id) is None:
            raise DoctorNotFound()
        if store.get_patient(patient_id) is None:
            raise PatientNotFound()

        slot = store.get_slot_at(doctor_id, on_date, time)
        if slot is not None and slot.status != SLOT_FREE:
            raise SlotUnavailable()

        if store.find_patient_conflict(patient_id, on_date, time) is not None:
            raise PatientDoubleBooked()

        if slot is not None:
            if not store.acquire_slot(slot.id, patient_id, notes):
                raise SlotUnavailable()
            slot_id = slot.id
        else:
            # Booking a time that was never materialised creates the row directly.
            created = store.create_held_slot(doctor_id, on_date, time, patient_id, notes)
            if created is None:
                raise SlotUnavailable()
            slot_id = created.id

    logger.info('Patient %s booked slot %s with doctor %s on %s at %s', patient_id, slot_id, doctor_id, on_date, time)
    return store.get_slot(slot_id)


def cancel(store: SlotStore, slot_id: int, today: date | None = None) -> Appointment:
    today = today or date.today()

    with store.transaction():
        slot = store.get_slot(slot_id)
        if slot is None:
            raise SlotNotFound()
        if slot.status != SLOT_HELD:
            raise InvalidState('Only booked appointments can be cancelled.')
        if slot.date < today:
            raise PastDate('Cannot cancel past appointments.')

        if not store.release_slot(slot.id):
            raise InvalidState('Only booked appointments can be cancelled.')

    logger.info('Cancelled slot %s; it is free again', slot_id)
    return store.get_slot(slot_id)


def reschedule(
    store: SlotStore,
    slot_id: int,
    doctor_id: int | None = None,
    on_date: date | None = None,
    time: str | None = None,
    notes: str | None = None,
    today: date | None = None,
) -> int:
    """Move a held appointment to another free slot and return that slot's id.

    The target slot is acquired before the source is released, inside one
    transaction. If either step fails nothing is changed.
    """
    today = today or date.today()
    if time is not None:
        time = normalize_clock(time)

    with store.transaction():
        source = store.get_slot(slot_id)
        if source is None:
            raise SlotNotFound()
        if source.status != SLOT_HELD:
            raise InvalidState('Only booked appointments can be rescheduled.')
        if on_date is not None and on_date < today:
            raise PastDate('Cannot reschedule appointments to the past.')

        patient_id = source.patient_id
        target_doctor_id = doctor_id or source.doctor_id
        target_date = on_date or source.date
        target_time = time or source.time
        carried_notes = notes if notes is not None else source.notes

        target = store.get_slot_at(target_doctor_id, target_date, target_time)
        if target is None or target.status != SLOT_FREE:
            raise SlotUnavailable('New time slot is not available.')

        if store.find_patient_conflict(patient_id, target_date, target_time, exclude_slot_id=source.id) is not None:
            raise PatientDoubleBooked()

        if not store.acquire_slot(target.id, patient_id, carried_notes):
            raise SlotUnavailable('New time slot is not available.')
        if not store.release_slot(source.id, patient_id=patient_id):
            raise InvalidState('Appointment changed while it was being rescheduled.')

        target_id = target.id

    logger.info('Rescheduled patient %s from slot %s to slot %s', patient_id, slot_id, target_id)
    return target_id
