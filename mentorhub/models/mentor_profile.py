"""Mentor profile model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from mentorhub.database import Base


class MentorProfile(Base):
    """Public professional details shown when browsing mentors."""
    __tablename__ = "mentor_profiles"

    id = Column(String(36), ForeignKey("users.id"), primary_key=True)
    title = Column(String)
    company = Column(String)
    bio = Column(Text)
    category = Column(String, index=True)
    expertise = Column(JSON, default=list)
    languages = Column(JSON, default=list)
    hourly_rate = Column(Float, default=0.0)
    rating = Column(Float, default=0.0)
    total_sessions = Column(Integer, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
