"""Appointment model definitions."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, text
from mentorhub.database import Base

CANCELLED_STATUS = "cancelled"


class Appointment(Base):
    """Represents a booked mentoring session."""
    __tablename__ = "appointments"
    __table_args__ = (
        # One live booking per mentor slot; cancelled rows free the slot again.
        Index(
            "uq_appointments_mentor_slot",
            "mentor_id",
            "date",
            "time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    mentor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM slot start
    type = Column(String, nullable=False)
    problem_description = Column(Text)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
