"""Appointment slot model definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.database import Base

SLOT_FREE = "free"
SLOT_HELD = "held"
SLOT_CANCELLED = "cancelled"
SLOT_COMPLETED = "completed"
SLOT_STATUSES = (SLOT_FREE, SLOT_HELD, SLOT_CANCELLED, SLOT_COMPLETED)


class Appointment(Base):
    """One bookable (doctor, date, time) slot, free or held by a patient."""
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("doctor_id", "date", "time", name="uq_appointments_doctor_date_time"),
        CheckConstraint(
            "status IN ('free', 'held', 'cancelled', 'completed')",
            name="ck_appointments_status",
        ),
        Index("idx_appointments_doctor_date", "doctor_id", "date"),
        Index("idx_appointments_patient", "patient_id"),
        Index("idx_appointments_status", "status"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=True)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM
    status = Column(String, nullable=False, default=SLOT_FREE)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")
