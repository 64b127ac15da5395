import logging
from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.auth.dependencies import get_current_user
from mentorhub.core import config
from mentorhub.database import get_db
from mentorhub.models.appointment import CANCELLED_STATUS, Appointment
from mentorhub.models.notification import Notification
from mentorhub.models.user import User
from mentorhub.routes import availability_routes
from mentorhub.routes.errors import database_unavailable, ensure_database_ready
from mentorhub.scheduling import resolver

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

SESSION_TYPES = ('video', 'chat', 'call')
PENDING_STATUS = 'pending'
COMPLETED_STATUS = 'completed'
MAX_PROBLEM_DESCRIPTION_LENGTH = 1000


def normalize_slot_time(value: str) -> str:
    try:
        parsed = resolver.parse_wall_clock(value)
    except ValueError as exc:
        raise ValueError('Time must be formatted as HH:MM.') from exc
    return resolver.format_slot(parsed)


def normalize_session_type(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in SESSION_TYPES:
        raise ValueError('Invalid session type.')
    return normalized


def normalize_problem_description(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Please describe what you would like to discuss.')
    if len(normalized) > MAX_PROBLEM_DESCRIPTION_LENGTH:
        raise ValueError(f'Description must be {MAX_PROBLEM_DESCRIPTION_LENGTH} characters or fewer.')
    return normalized


class CreateAppointmentRequest(BaseModel):
    mentor_id: str
    date: date
    time: str
    type: str = 'video'
    problem_description: str

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_slot_time(value)

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str) -> str:
        return normalize_session_type(value)

    @field_validator('problem_description')
    @classmethod
    def validate_problem_description(cls, value: str) -> str:
        return normalize_problem_description(value)


class UpdateAppointmentRequest(BaseModel):
    slot_date: date | None = None
    slot_time: str | None = None
    type: str | None = None
    problem_description: str | None = None

    @field_validator('slot_time')
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return normalize_slot_time(value) if value is not None else None

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str | None) -> str | None:
        return normalize_session_type(value) if value is not None else None

    @field_validator('problem_description')
    @classmethod
    def validate_problem_description(cls, value: str | None) -> str | None:
        return normalize_problem_description(value) if value is not None else None


class AppointmentResponse(BaseModel):
    id: str
    mentor_id: str
    user_id: str
    date: date
    time: str
    type: str
    problem_description: str | None = None
    status: str
    duration_minutes: int = config.SESSION_DURATION_MINUTES

    class Config:
        from_attributes = True


def ensure_slot_offered(mentor: User, slot_date: date, slot_time: str, db: Session) -> None:
    """Reject a date/time the mentor's availability does not offer right now."""
    now = availability_routes.mentor_now(mentor.time_zone)
    today = now.date()
    range_end = today + timedelta(days=config.MAX_HORIZON_DAYS)

    if slot_date < today or (slot_date == today and time.fromisoformat(slot_time) <= now.time()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Appointments must be scheduled in the future.',
        )

    if slot_date >= range_end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Appointments can only be booked within the next {config.MAX_HORIZON_DAYS} days.',
        )

    rules = availability_routes.fetch_rules(mentor.id, db)
    offered = resolver.resolve_availability(mentor.id, config.MAX_HORIZON_DAYS, rules, today)
    if slot_time not in offered.get(slot_date, []):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='The mentor is not available at this time.',
        )


def ensure_slot_free(
    mentor_id: str,
    slot_date: date,
    slot_time: str,
    db: Session,
    exclude_appointment_id: str | None = None,
) -> None:
    query = db.query(Appointment).filter(
        Appointment.mentor_id == mentor_id,
        Appointment.date == slot_date,
        Appointment.time == slot_time,
        Appointment.status != CANCELLED_STATUS,
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    if query.first():
        raise slot_taken()


def slot_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail='This time is already booked.',
    )


def get_appointment_or_404(appointment_id: str, db: Session) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
    return appointment


def notify_mentor(appointment: Appointment, title: str, message: str, db: Session) -> None:
    db.add(
        Notification(
            recipient_id=appointment.mentor_id,
            appointment_id=appointment.id,
            title=title,
            message=message,
        )
    )


def ensure_modifiable(appointment: Appointment) -> None:
    if appointment.status in {CANCELLED_STATUS, COMPLETED_STATUS}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'A {appointment.status} appointment cannot be changed.',
        )


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if data.mentor_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Mentors cannot book sessions with themselves.',
        )

    ensure_database_ready()

    try:
        mentor = availability_routes.get_mentor_or_404(data.mentor_id, db)
        ensure_slot_offered(mentor, data.date, data.time, db)
        ensure_slot_free(mentor.id, data.date, data.time, db)

        appointment = Appointment(
            mentor_id=mentor.id,
            user_id=current_user.id,
            date=data.date,
            time=data.time,
            type=data.type,
            problem_description=data.problem_description,
            status=PENDING_STATUS,
        )
        db.add(appointment)
        db.flush()
        notify_mentor(
            appointment,
            'New Appointment Request',
            f'You have a new appointment request for {data.date.isoformat()} at {data.time}',
            db,
        )
        db.commit()
        db.refresh(appointment)

        logger.info('Booked mentor %s on %s at %s', mentor.id, data.date, data.time)
        return appointment
    except IntegrityError as exc:
        db.rollback()
        raise slot_taken() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return db.query(Appointment).filter(
            (Appointment.user_id == current_user.id) | (Appointment.mentor_id == current_user.id),
        ).order_by(Appointment.date.asc(), Appointment.time.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.patch('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    data: UpdateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = get_appointment_or_404(appointment_id, db)
        if appointment.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the person who booked this appointment can change it.',
            )
        ensure_modifiable(appointment)

        slot_date = data.slot_date or appointment.date
        slot_time = data.slot_time or appointment.time
        if (slot_date, slot_time) != (appointment.date, appointment.time):
            mentor = availability_routes.get_mentor_or_404(appointment.mentor_id, db)
            ensure_slot_offered(mentor, slot_date, slot_time, db)
            ensure_slot_free(mentor.id, slot_date, slot_time, db, exclude_appointment_id=appointment.id)

        appointment.date = slot_date
        appointment.time = slot_time
        if data.type is not None:
            appointment.type = data.type
        if data.problem_description is not None:
            appointment.problem_description = data.problem_description
        appointment.updated_at = datetime.utcnow()
        notify_mentor(
            appointment,
            'Appointment Updated',
            f'An appointment has been modified for {slot_date.isoformat()} at {slot_time}',
            db,
        )

        db.commit()
        db.refresh(appointment)
        return appointment
    except IntegrityError as exc:
        db.rollback()
        raise slot_taken() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = get_appointment_or_404(appointment_id, db)
        if current_user.id not in {appointment.user_id, appointment.mentor_id}:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the mentee or mentor of this appointment can cancel it.',
            )
        if appointment.status == CANCELLED_STATUS:
            return appointment
        ensure_modifiable(appointment)

        appointment.status = CANCELLED_STATUS
        appointment.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(appointment)

        logger.info('Appointment %s cancelled by %s', appointment.id, current_user.id)
        return appointment
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
