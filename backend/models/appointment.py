"""Appointment model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from backend.database import Base
from backend.models.enums import AppointmentStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Appointment(Base):
    """A meeting requested by a student with a faculty member."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mode = Column(String, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.REQUESTED.value)
    reason = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
