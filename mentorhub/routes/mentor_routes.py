import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.auth.dependencies import MENTOR_ROLE, get_current_user
from mentorhub.database import get_db
from mentorhub.models.mentor_profile import MentorProfile
from mentorhub.models.user import User
from mentorhub.routes.errors import database_unavailable

router = APIRouter(tags=['mentors'])

logger = logging.getLogger(__name__)

CATEGORIES = ('career', 'education', 'health', 'relationships', 'parenting', 'technology')
DEFAULT_TITLE = 'Professional Mentor'
MAX_BIO_LENGTH = 2000


def normalize_category(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in CATEGORIES:
        raise ValueError('Invalid category.')
    return normalized


class MentorProfileRequest(BaseModel):
    title: str | None = None
    company: str | None = None
    bio: str | None = Field(default=None, max_length=MAX_BIO_LENGTH)
    category: str
    expertise: list[str] = []
    languages: list[str] = []
    hourly_rate: float = Field(default=0.0, ge=0)

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str) -> str:
        return normalize_category(value)

    @field_validator('expertise', 'languages')
    @classmethod
    def strip_tags(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]


class MentorSummaryResponse(BaseModel):
    id: str
    full_name: str | None = None
    title: str
    company: str | None = None
    bio: str
    category: str | None = None
    expertise: list[str]
    hourly_rate: float
    rating: float


class MentorDetailResponse(MentorSummaryResponse):
    languages: list[str]
    total_sessions: int
    time_zone: str


def summarize(user: User, profile: MentorProfile) -> MentorSummaryResponse:
    return MentorSummaryResponse(
        id=user.id,
        full_name=user.full_name,
        title=profile.title or DEFAULT_TITLE,
        company=profile.company,
        bio=profile.bio or '',
        category=profile.category,
        expertise=profile.expertise or [],
        hourly_rate=profile.hourly_rate or 0.0,
        rating=profile.rating or 0.0,
    )


def describe(user: User, profile: MentorProfile) -> MentorDetailResponse:
    return MentorDetailResponse(
        **summarize(user, profile).model_dump(),
        languages=profile.languages or [],
        total_sessions=profile.total_sessions or 0,
        time_zone=user.time_zone,
    )


def mentors_query(db: Session):
    return db.query(User, MentorProfile).join(MentorProfile, MentorProfile.id == User.id).filter(
        User.role == MENTOR_ROLE,
    )


@router.get('', response_model=list[MentorSummaryResponse])
def list_mentors(
    category: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = mentors_query(db)
    if category is not None:
        try:
            query = query.filter(MentorProfile.category == normalize_category(category))
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

    try:
        rows = query.order_by(MentorProfile.rating.desc(), User.full_name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [summarize(user, profile) for user, profile in rows]


@router.get('/{mentor_id}', response_model=MentorDetailResponse)
def get_mentor(mentor_id: str, db: Session = Depends(get_db)):
    try:
        row = mentors_query(db).filter(User.id == mentor_id).first()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Mentor not found.',
        )

    return describe(*row)


@router.put('/me', response_model=MentorDetailResponse)
def upsert_my_mentor_profile(
    data: MentorProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        profile = db.query(MentorProfile).filter(MentorProfile.id == current_user.id).first()
        if profile is None:
            profile = MentorProfile(id=current_user.id)
            db.add(profile)
            logger.info('User %s became a mentor', current_user.id)

        profile.title = data.title
        profile.company = data.company
        profile.bio = data.bio
        profile.category = data.category
        profile.expertise = data.expertise
        profile.languages = data.languages
        profile.hourly_rate = data.hourly_rate
        current_user.role = MENTOR_ROLE

        db.commit()
        db.refresh(profile)
        db.refresh(current_user)
        return describe(current_user, profile)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
