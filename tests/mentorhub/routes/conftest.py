import os
from datetime import datetime, time
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from mentorhub.database import Base  # noqa: E402
from mentorhub.models.appointment import Appointment  # noqa: E402
from mentorhub.models.availability import AvailabilityRule  # noqa: E402
from mentorhub.models.mentor_profile import MentorProfile  # noqa: E402
from mentorhub.models.notification import Notification  # noqa: E402
from mentorhub.models.user import User  # noqa: E402
from mentorhub.routes import availability_routes  # noqa: E402

# Sunday morning, before any Monday slot.
FIXED_NOW = datetime(2026, 1, 4, 8, 0, tzinfo=ZoneInfo('UTC'))


@pytest.fixture
def scheduling_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tables = [
        User.__table__,
        MentorProfile.__table__,
        AvailabilityRule.__table__,
        Appointment.__table__,
        Notification.__table__,
    ]
    Base.metadata.create_all(bind=engine, tables=tables)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(tables)))


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('mentorhub.routes.availability_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr('mentorhub.routes.appointment_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def pin_clock(monkeypatch: pytest.MonkeyPatch):
    """Freeze the current instant; zone conversion still runs."""
    real_mentor_now = availability_routes.mentor_now

    def _pin(now: datetime) -> datetime:
        monkeypatch.setattr(
            availability_routes,
            'mentor_now',
            lambda time_zone, now=now: real_mentor_now(time_zone, now=now),
        )
        return now

    return _pin


@pytest.fixture
def fixed_clock(pin_clock) -> datetime:
    return pin_clock(FIXED_NOW)


@pytest.fixture
def mentor(scheduling_db) -> User:
    user = User(id='mentor-1', email='mentor@example.com', full_name='Ada Mentor', role='mentor', time_zone='UTC')
    scheduling_db.add(user)
    scheduling_db.commit()
    return user


@pytest.fixture
def mentee(scheduling_db) -> User:
    user = User(id='mentee-1', email='mentee@example.com', full_name='Sam Mentee', role='mentee', time_zone='UTC')
    scheduling_db.add(user)
    scheduling_db.commit()
    return user


@pytest.fixture
def add_rule(scheduling_db):
    def _add_rule(mentor_id: str, day_of_week: int, start: time, end: time, is_available: bool = True):
        rule = AvailabilityRule(
            mentor_id=mentor_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            is_available=is_available,
        )
        scheduling_db.add(rule)
        scheduling_db.commit()
        scheduling_db.refresh(rule)
        return rule

    return _add_rule
