import os
from datetime import time

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_time(value: str | None, default: time) -> time:
    if not value:
        return default
    return time.fromisoformat(value.strip())


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mentorhub.db")

CORS_ALLOWED_ORIGINS = _get_list(
    os.getenv("CORS_ALLOWED_ORIGINS"),
    ["http://localhost:8081", "http://localhost:19006"],
)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

DEFAULT_HORIZON_DAYS = int(os.getenv("DEFAULT_HORIZON_DAYS", "7"))
MAX_HORIZON_DAYS = int(os.getenv("MAX_HORIZON_DAYS", "30"))
SESSION_DURATION_MINUTES = int(os.getenv("SESSION_DURATION_MINUTES", "60"))

# Offered to every date when a mentor has never configured availability.
DEFAULT_GRID_START = _get_time(os.getenv("DEFAULT_GRID_START"), time(9, 0))
DEFAULT_GRID_END = _get_time(os.getenv("DEFAULT_GRID_END"), time(17, 0))

DEFAULT_TIME_ZONE = os.getenv("DEFAULT_TIME_ZONE", "UTC")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if DEFAULT_GRID_START >= DEFAULT_GRID_END:
        raise RuntimeError("DEFAULT_GRID_START must be earlier than DEFAULT_GRID_END.")
    if not 0 < DEFAULT_HORIZON_DAYS <= MAX_HORIZON_DAYS:
        raise RuntimeError("DEFAULT_HORIZON_DAYS must be between 1 and MAX_HORIZON_DAYS.")
