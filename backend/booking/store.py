"""Persistence port for the booking core.

``SlotStore`` wraps one SQLAlchemy session. Writes that race with other
requests are expressed as conditional statements (``UPDATE ... WHERE status =``
and insert-or-ignore on the ``(doctor_id, date, time)`` constraint) so the
database decides the winner.
"""

import logging
from contextlib import contextmanager
from datetime import date

from sqlalchemy import insert, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.booking.errors import BookingError, StorageError
from backend.models.appointment import SLOT_FREE, SLOT_HELD, Appointment
from backend.models.doctor import Doctor
from backend.models.patient import Patient

logger = logging.getLogger(__name__)

SLOT_KEY_COLUMNS = ('doctor_id', 'date', 'time')


class SlotStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self):
        """Commit everything done inside the block, or roll all of it back."""
        try:
            yield self
            self.db.commit()
        except BookingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Booking transaction failed')
            raise StorageError() from exc

    def get_doctor(self, doctor_id: int) -> Doctor | None:
        return self.db.get(Doctor, doctor_id)

    def get_patient(self, patient_id: int) -> Patient | None:
        return self.db.get(Patient, patient_id)

    def get_slot(self, slot_id: int) -> Appointment | None:
        return self.db.get(Appointment, slot_id)

    def get_slot_at(self, doctor_id: int, on_date: date, time: str) -> Appointment | None:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
            Appointment.time == time,
        ).first()

    def existing_times(self, doctor_id: int, on_date: date) -> set[str]:
        rows = self.db.query(Appointment.time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
        ).all()
        return {time for (time,) in rows}

    def list_slots(self, doctor_id: int, on_date: date, include_booked: bool = False) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
        )
        if not include_booked:
            query = query.filter(Appointment.status == SLOT_FREE)
        return query.order_by(Appointment.time.asc()).all()

    def find_patient_conflict(
        self,
        patient_id: int,
        on_date: date,
        time: str,
        exclude_slot_id: int | None = None,
    ) -> Appointment | None:
        query = self.db.query(Appointment).filter(
            Appointment.patient_id == patient_id,
            Appointment.date == on_date,
            Appointment.time == time,
            Appointment.status == SLOT_HELD,
        )
        if exclude_slot_id is not None:
            query = query.filter(Appointment.id != exclude_slot_id)
        return query.first()

    def _insert_ignoring_conflicts(self, rows: list[dict]) -> int:
        table = Appointment.__table__
        dialect = self.db.get_bind().dialect.name

        if dialect in ('postgresql', 'sqlite'):
            dialect_insert = postgresql_insert if dialect == 'postgresql' else sqlite_insert
            inserted = 0
            for row in rows:
                statement = dialect_insert(table).values(**row).on_conflict_do_nothing(
                    index_elements=list(SLOT_KEY_COLUMNS),
                )
                inserted += self.db.execute(statement).rowcount
            return inserted

        inserted = 0
        for row in rows:
            try:
                with self.db.begin_nested():
                    self.db.execute(insert(table).values(**row))
                inserted += 1
            except IntegrityError:
                logger.debug('Slot %s on %s at %s already exists', row['doctor_id'], row['date'], row['time'])
        return inserted

    def insert_free_slots(self, doctor_id: int, on_date: date, times: list[str]) -> int:
        """Insert free slots, skipping any that another writer already created."""
        rows = [
            {'doctor_id': doctor_id, 'date': on_date, 'time': time, 'status': SLOT_FREE, 'patient_id': None}
            for time in times
        ]
        return self._insert_ignoring_conflicts(rows)

    def acquire_slot(self, slot_id: int, patient_id: int, notes: str | None) -> bool:
        """Move a free slot to held. False when the slot was no longer free."""
        result = self.db.execute(
            update(Appointment)
            .where(Appointment.id == slot_id, Appointment.status == SLOT_FREE)
            .values(status=SLOT_HELD, patient_id=patient_id, notes=notes)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def create_held_slot(
        self,
        doctor_id: int,
        on_date: date,
        time: str,
        patient_id: int,
        notes: str | None,
    ) -> Appointment | None:
        """Insert a slot directly as held. None when the slot already exists."""
        row = {
            'doctor_id': doctor_id,
            'date': on_date,
            'time': time,
            'status': SLOT_HELD,
            'patient_id': patient_id,
            'notes': notes,
        }
        if not self._insert_ignoring_conflicts([row]):
            return None
        return self.get_slot_at(doctor_id, on_date, time)

    def release_slot(self, slot_id: int, patient_id: int | None = None) -> bool:
        """Move a held slot back to free. False when the slot was not held."""
        statement = update(Appointment).where(Appointment.id == slot_id, Appointment.status == SLOT_HELD)
        if patient_id is not None:
            statement = statement.where(Appointment.patient_id == patient_id)
        result = self.db.execute(
            statement
            .values(status=SLOT_FREE, patient_id=None, notes=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
