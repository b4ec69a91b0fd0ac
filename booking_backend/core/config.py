import os

import pytz
from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Europe/Prague")
MAX_SLOT_RANGE_DAYS = _get_int(os.getenv("MAX_SLOT_RANGE_DAYS"), 62)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:5173"])


def validate_runtime_config() -> None:
    if DEFAULT_TIMEZONE not in pytz.all_timezones_set:
        raise RuntimeError(f"DEFAULT_TIMEZONE '{DEFAULT_TIMEZONE}' is not a known IANA timezone.")
    if MAX_SLOT_RANGE_DAYS <= 0:
        raise RuntimeError("MAX_SLOT_RANGE_DAYS must be a positive number of days.")
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point to a server database in production.")
