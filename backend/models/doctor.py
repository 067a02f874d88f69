"""Doctor model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.orm import relationship

from backend.database import Base


class Doctor(Base):
    """A doctor and the weekly availability template their slots are generated from."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String)
    specialization = Column(String, index=True)
    experience = Column(Integer)
    availability = Column(JSON)  # {"slotLength": 30, "mon": {"start": "09:00", "end": "17:00"}, ...}
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    appointments = relationship("Appointment", back_populates="doctor")
