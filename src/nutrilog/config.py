"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    fdc_api_key: str
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    week_start: str = "sunday"
    lookup_debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_week_start(raw: str | None) -> int:
    """Parse the configured first day of the week into a weekday number."""
    if raw is None:
        return _WEEKDAYS["sunday"]
    cleaned = raw.strip().lower()
    if cleaned.isdigit() and int(cleaned) in _WEEKDAYS.values():
        return int(cleaned)
    if cleaned not in _WEEKDAYS:
        raise ValueError(f"Unknown week start day: {raw!r}")
    return _WEEKDAYS[cleaned]
