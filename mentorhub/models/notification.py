"""Notification model definitions."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from mentorhub.database import Base

APPOINTMENT_UPDATE_TYPE = "appointment_update"
UNREAD_STATUS = "unread"


class Notification(Base):
    """A message for a user about one of their appointments."""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    recipient_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"))
    type = Column(String, default=APPOINTMENT_UPDATE_TYPE, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, default=UNREAD_STATUS, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
