"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from apscheduler.triggers.cron import CronTrigger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised notifier settings derived from environment variables."""

    database_url: str = Field(
        default="sqlite:///./data/notifier.db",
        description="SQLAlchemy-compatible database URL.",
    )
    debug: bool = Field(default=False)

    expo_push_url: str = Field(default="https://exp.host/--/api/v2/push/send")
    expo_access_token: str | None = Field(
        default=None,
        description="Optional Expo access token when push security is enabled.",
    )
    push_chunk_size: int = Field(default=100, ge=1, le=100)
    push_timeout_seconds: float = Field(default=15.0, gt=0)
    notification_sound: str = Field(default="notification_sound.wav")
    notification_channel_id: str = Field(default="NL")

    reminder_cron: str = Field(default="*/5 * * * *")
    reminder_lead_minutes: int = Field(default=120, ge=1, le=24 * 60)
    scheduler_lock_file: Path = Field(default=Path(".scheduler.lock"))

    app_env: str = Field(default="development")
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)
    health_port: int = Field(default=3001, ge=1, le=65535)
    server_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the notification server used by send_to_all.py.",
    )

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("reminder_cron")
    @classmethod
    def validate_reminder_cron(cls, value: str) -> str:
        """Reject crontab expressions APScheduler cannot parse."""

        try:
            CronTrigger.from_crontab(value, timezone="UTC")
        except ValueError as err:
            raise ValueError(f"REMINDER_CRON is not a valid crontab expression: {err}") from err
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    if settings.database_url.startswith("sqlite:///") and ":memory:" not in settings.database_url:
        Path(settings.database_url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    return settings
