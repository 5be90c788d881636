from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_url: str
    api_key: str
    admin_api_key: str
    default_timezone: str
    log_level: str
    max_slots: int


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip().strip('"').strip("'")


def require(name: str, value: str) -> str:
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


@lru_cache
def get_settings() -> Settings:
    return Settings(
        app_name="Bookable Resource Availability API",
        app_version="1.0.0",
        database_url=_get_env("DATABASE_URL", "sqlite:///./bookings.db"),
        api_key=_get_env("BOOKING_API_KEY"),
        admin_api_key=_get_env("ADMIN_API_KEY"),
        default_timezone=_get_env("BOOKING_TIMEZONE", "UTC") or "UTC",
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        max_slots=int(_get_env("BOOKING_MAX_SLOTS", "2000") or "2000"),
    )
