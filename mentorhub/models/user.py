"""User model definitions."""

from sqlalchemy import Column, String
from mentorhub.database import Base


class User(Base):
    """A marketplace user, keyed by the hosted auth service's subject id."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String)
    role = Column(String, default="mentee")  # mentee/mentor
    time_zone = Column(String, default="UTC")
