"""Materialisation of a doctor's slots for a date."""

import logging
from datetime import date

from backend.booking.availability import expected_times
from backend.booking.errors import DoctorNotFound, PastDate
from backend.booking.store import SlotStore
from backend.models.appointment import Appointment

logger = logging.getLogger(__name__)


def ensure_slots(store: SlotStore, doctor_id: int, on_date: date) -> None:
    """Persist a free slot for every template time the doctor lacks on ``on_date``.

    Existing slots are left untouched, even when the doctor's template has
    changed since they were created.
    """
    doctor = store.get_doctor(doctor_id)
    if doctor is None:
        raise DoctorNotFound()

    expected = expected_times(doctor.availability, on_date)
    existing = store.existing_times(doctor_id, on_date)
    missing = [time for time in expected if time not in existing]

    if not missing:
        return

    inserted = store.insert_free_slots(doctor_id, on_date, missing)
    logger.debug('Materialised %d of %d slots for doctor %s on %s', inserted, len(missing), doctor_id, on_date)


def list_available_slots(
    store: SlotStore,
    doctor_id: int,
    on_date: date,
    include_booked: bool = False,
    today: date | None = None,
) -> list[Appointment]:
    today = today or date.today()
    if on_date < today:
        raise PastDate('Cannot view slots for past dates.')

    with store.transaction():
        ensure_slots(store, doctor_id, on_date)
        slots = store.list_slots(doctor_id, on_date, include_booked=include_booked)

    return slots
