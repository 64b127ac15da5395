import logging
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.auth.dependencies import MENTOR_ROLE, get_current_mentor
from mentorhub.core import config
from mentorhub.database import get_db
from mentorhub.models.availability import AvailabilityRule
from mentorhub.models.user import User
from mentorhub.routes.errors import bad_request, database_unavailable, ensure_database_ready
from mentorhub.scheduling import resolver
from mentorhub.scheduling.errors import InvalidArgumentError

router = APIRouter(tags=['availability'])

logger = logging.getLogger(__name__)

DEFAULT_RULE_START = time(9, 0)
DEFAULT_RULE_END = time(17, 0)


class CreateRuleRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time = DEFAULT_RULE_START
    end_time: time = DEFAULT_RULE_END
    is_available: bool = True


class UpdateRuleRequest(BaseModel):
    start_time: time | None = None
    end_time: time | None = None
    is_available: bool | None = None


class CopyRulesRequest(BaseModel):
    source_day_of_week: int = Field(ge=0, le=6)


class RuleResponse(BaseModel):
    id: str
    mentor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool

    class Config:
        from_attributes = True


class DaySlotsResponse(BaseModel):
    date: date
    times: list[str]


class MentorSlotsResponse(BaseModel):
    mentor_id: str
    time_zone: str
    duration_minutes: int
    days: list[DaySlotsResponse]
    skipped_rule_ids: list[str]


def validate_window(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Start time must be before end time.',
        )


def resolve_time_zone(time_zone: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(time_zone or config.DEFAULT_TIME_ZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning('Unknown time zone %r, falling back to %s', time_zone, config.DEFAULT_TIME_ZONE)
        return ZoneInfo(config.DEFAULT_TIME_ZONE)


def mentor_now(time_zone: str | None, now: datetime | None = None) -> datetime:
    """``now`` (default: the current instant) on the mentor's wall clock."""
    current = now or datetime.now(timezone.utc)
    return current.astimezone(resolve_time_zone(time_zone))


def get_mentor_or_404(mentor_id: str, db: Session) -> User:
    mentor = db.query(User).filter(User.id == mentor_id, User.role == MENTOR_ROLE).first()
    if not mentor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Mentor not found.',
        )
    return mentor


def fetch_rules(mentor_id: str, db: Session) -> list[AvailabilityRule]:
    return db.query(AvailabilityRule).filter(
        AvailabilityRule.mentor_id == mentor_id,
    ).order_by(AvailabilityRule.day_of_week.asc(), AvailabilityRule.start_time.asc()).all()


def get_owned_rule_or_404(rule_id: str, mentor: User, db: Session) -> AvailabilityRule:
    rule = db.query(AvailabilityRule).filter(AvailabilityRule.id == rule_id).first()
    if not rule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Availability rule not found.',
        )
    if rule.mentor_id != mentor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the mentor who owns this rule can change it.',
        )
    return rule


@router.get('/mentors/{mentor_id}/rules', response_model=list[RuleResponse])
def list_rules(mentor_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        get_mentor_or_404(mentor_id, db)
        return fetch_rules(mentor_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/rules', response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
def create_rule(
    data: CreateRuleRequest,
    mentor: User = Depends(get_current_mentor),
    db: Session = Depends(get_db),
):
    validate_window(data.start_time, data.end_time)

    ensure_database_ready()

    try:
        rule = AvailabilityRule(
            mentor_id=mentor.id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_available=data.is_available,
        )
        db.add(rule)
        db.commit()
        db.refresh(rule)

        logger.info('Mentor %s added availability on day %s', mentor.id, rule.day_of_week)
        return rule
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/rules/{rule_id}', response_model=RuleResponse)
def update_rule(
    rule_id: str,
    data: UpdateRuleRequest,
    mentor: User = Depends(get_current_mentor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rule = get_owned_rule_or_404(rule_id, mentor, db)

        start_time = data.start_time if data.start_time is not None else rule.start_time
        end_time = data.end_time if data.end_time is not None else rule.end_time
        validate_window(start_time, end_time)

        rule.start_time = start_time
        rule.end_time = end_time
        if data.is_available is not None:
            rule.is_available = data.is_available

        db.commit()
        db.refresh(rule)
        return rule
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/rules/{rule_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    rule_id: str,
    mentor: User = Depends(get_current_mentor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rule = get_owned_rule_or_404(rule_id, mentor, db)
        db.delete(rule)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/rules/copy', response_model=list[RuleResponse], status_code=status.HTTP_201_CREATED)
def copy_rules_to_all_days(
    data: CopyRulesRequest,
    mentor: User = Depends(get_current_mentor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rules = fetch_rules(mentor.id, db)
        if not any(rule.day_of_week == data.source_day_of_week and rule.is_available for rule in rules):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='There is no availability on that day to copy.',
            )

        try:
            windows = resolver.copy_rules_to_all_days(data.source_day_of_week, rules)
        except InvalidArgumentError as exc:
            raise bad_request(exc) from exc

        created = [
            AvailabilityRule(
                mentor_id=mentor.id,
                day_of_week=window.day_of_week,
                start_time=window.start_time,
                end_time=window.end_time,
                is_available=True,
            )
            for window in windows
        ]
        db.add_all(created)
        db.commit()
        for rule in created:
            db.refresh(rule)

        logger.info(
            'Mentor %s copied day %s availability into %d new rules',
            mentor.id,
            data.source_day_of_week,
            len(created),
        )
        return created
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/mentors/{mentor_id}/slots', response_model=MentorSlotsResponse)
def list_mentor_slots(
    mentor_id: str,
    days: int = Query(default=config.DEFAULT_HORIZON_DAYS, ge=1, le=config.MAX_HORIZON_DAYS),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        mentor = get_mentor_or_404(mentor_id, db)
        rules = fetch_rules(mentor_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    time_zone = resolve_time_zone(mentor.time_zone)
    now = mentor_now(time_zone.key)

    try:
        resolution = resolver.resolve(mentor_id, days, rules, reference_date=now.date())
    except InvalidArgumentError as exc:
        raise bad_request(exc) from exc

    slots_by_date = resolver.drop_elapsed(resolution.slots, now)

    return MentorSlotsResponse(
        mentor_id=mentor_id,
        time_zone=time_zone.key,
        duration_minutes=config.SESSION_DURATION_MINUTES,
        days=[DaySlotsResponse(date=slot_date, times=times) for slot_date, times in slots_by_date.items()],
        skipped_rule_ids=[error.rule_id for error in resolution.malformed if error.rule_id],
    )
