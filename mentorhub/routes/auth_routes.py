from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.auth.dependencies import get_current_user
from mentorhub.database import get_db
from mentorhub.models.user import User
from mentorhub.routes.errors import database_unavailable

router = APIRouter(tags=['auth'])

MAX_FULL_NAME_LENGTH = 120


class MeResponse(BaseModel):
    id: str
    email: str | None = None
    full_name: str | None = None
    role: str
    time_zone: str

    class Config:
        from_attributes = True


class UpdateMeRequest(BaseModel):
    full_name: str | None = None
    time_zone: str | None = None

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            raise ValueError('Full name cannot be blank.')
        if len(normalized) > MAX_FULL_NAME_LENGTH:
            raise ValueError(f'Full name must be {MAX_FULL_NAME_LENGTH} characters or fewer.')
        return normalized


def validate_time_zone(time_zone: str) -> str:
    normalized = time_zone.strip()
    try:
        ZoneInfo(normalized)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Unknown time zone.',
        ) from exc
    return normalized


@router.get('/me', response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch('/me', response_model=MeResponse)
def update_me(
    data: UpdateMeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    time_zone = validate_time_zone(data.time_zone) if data.time_zone is not None else None

    try:
        if data.full_name is not None:
            current_user.full_name = data.full_name
        if time_zone is not None:
            current_user.time_zone = time_zone

        db.commit()
        db.refresh(current_user)
        return current_user
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
