from datetime import datetime, timedelta, timezone

import jwt

from mentorhub.core import config

DEFAULT_EXPIRES_MINUTES = 60


def create_access_token(subject: str, expires_minutes: int | None = None, claims: dict | None = None) -> str:
    """Mint a token shaped like the hosted auth service's.

    Production tokens come from the auth service; this is for local
    development and tests.
    """
    expire_minutes = expires_minutes or DEFAULT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {
        **(claims or {}),
        "sub": subject,
        "aud": config.JWT_AUDIENCE,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        audience=config.JWT_AUDIENCE,
    )
