import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.auth import jwt_handler
from mentorhub.core import config
from mentorhub.database import get_db
from mentorhub.models.user import User
from mentorhub.routes.errors import database_unavailable

security = HTTPBearer()

logger = logging.getLogger(__name__)

MENTOR_ROLE = "mentor"
MENTEE_ROLE = "mentee"


def register_user(user_id: str, payload: dict, db: Session) -> User:
    """Create the local row for a user the auth service has vouched for."""
    metadata = payload.get("user_metadata") or {}
    user = User(
        id=user_id,
        email=payload.get("email"),
        full_name=metadata.get("full_name"),
        role=MENTEE_ROLE,
        time_zone=config.DEFAULT_TIME_ZONE,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another request registered the same subject first.
        db.rollback()
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with this email already exists.",
            )
        return user

    db.refresh(user)
    logger.info("Registered user %s on first sign-in", user_id)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            user = register_user(user_id, payload, db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
    return user


def get_current_mentor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != MENTOR_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only mentors can manage availability.",
        )
    return current_user
