"""Availability rule model definitions."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, SmallInteger, String, Time
from mentorhub.database import Base


class AvailabilityRule(Base):
    """A recurring weekly window in which a mentor can be booked."""
    __tablename__ = "mentor_availability"
    __table_args__ = (
        Index("idx_mentor_availability_mentor_day", "mentor_id", "day_of_week", "start_time"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    mentor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    day_of_week = Column(SmallInteger, nullable=False)  # 0 = Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
