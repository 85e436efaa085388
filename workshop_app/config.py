from __future__ import annotations
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_REMINDER_HOURS: List[float] = [24, 1]


def _parse_csv_numbers(value: str | List[float] | None) -> List[float]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [float(x) for x in value]
    if isinstance(value, (int, float)):
        return [float(value)]
    parts = [p.strip() for p in str(value).split(",") if p.strip()]
    return [float(p) for p in parts]


class Settings(BaseSettings):
    # === Storage / DB ===
    DATABASE_URL: Optional[str] = None
    POSTGRES_DSN: Optional[str] = None
    SQL_ECHO: bool = False

    # === Email (Brevo) ===
    BREVO_API_KEY: Optional[str] = None
    BREVO_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    SENDER_EMAIL: str = ""
    SENDER_NAME: str = "LMS Platform"
    EMAIL_SEND_TIMEOUT_SECONDS: float = 15.0

    # === Scheduler / reminders ===
    ENABLE_SCHEDULER: bool = True
    SCHEDULER_TZ: str = "UTC"
    REMINDER_INTERVAL_MINUTES: int = 15
    # CSV in env ("24,1"), not JSON
    REMINDERS_HOURS_BEFORE: Annotated[List[float], NoDecode] = Field(default_factory=lambda: list(DEFAULT_REMINDER_HOURS))

    # === Admin web app ===
    WEBAPP_HOST: str = "0.0.0.0"
    WEBAPP_PORT: int = 8080
    ADMIN_API_KEY: Optional[str] = None

    # === Logs ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_sql: str = Field(default="WARNING", alias="LOG_SQL")

    @field_validator("REMINDERS_HOURS_BEFORE", mode="before")
    @classmethod
    def _v_reminders(cls, v):
        if v is None or v == "":
            return list(DEFAULT_REMINDER_HOURS)
        return _parse_csv_numbers(v)

    @field_validator("REMINDER_INTERVAL_MINUTES")
    @classmethod
    def _v_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("REMINDER_INTERVAL_MINUTES must be positive")
        return v

    def model_post_init(self, __context) -> None:
        # DSN/URL compatibility
        if not self.DATABASE_URL and self.POSTGRES_DSN:
            self.DATABASE_URL = self.POSTGRES_DSN
        if not self.DATABASE_URL:
            self.DATABASE_URL = "postgresql+asyncpg://app:app@db:5432/app"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
