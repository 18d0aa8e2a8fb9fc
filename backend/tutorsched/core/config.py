# backend/tutorsched/core/config.py
import logging
import os
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment name",
    )

    # Persistence
    database_url: str = Field(
        default="sqlite+pysqlite:///./tutorsched.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )
    database_pool_size: int = Field(default=10, alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=5, alias="DATABASE_MAX_OVERFLOW")

    # Timezones
    default_timezone: str = Field(
        default="Africa/Cairo",
        alias="DEFAULT_TIMEZONE",
        description="Fallback IANA timezone when a teacher or slot has none",
    )

    # Recurrence generation
    default_horizon_months: int = Field(default=2, ge=1, le=12, alias="DEFAULT_HORIZON_MONTHS")
    generation_batch_size: int = Field(default=200, alias="GENERATION_BATCH_SIZE")

    # DST handling
    dst_warning_days: int = Field(default=7, alias="DST_WARNING_DAYS")
    dst_heavy_months: List[int] = Field(
        default_factory=lambda: [3, 4, 10, 11],
        alias="DST_HEAVY_MONTHS",
        description="Calendar months (1-12) in which the hourly DST check runs, as a JSON list",
    )
    dst_lookback_hours: int = Field(
        default=24,
        alias="DST_LOOKBACK_HOURS",
        description="How far back a DST check looks for transitions that already happened",
    )

    # Teacher search
    search_max_workers: int = Field(default=1, ge=1, alias="SEARCH_MAX_WORKERS")
    # One deadline for all pooled evaluations of a search
    search_timeout_seconds: float = Field(default=5.0, gt=0, alias="SEARCH_TIMEOUT_SECONDS")
    alternatives_look_ahead_days: int = Field(default=14, alias="ALTERNATIVES_LOOK_AHEAD_DAYS")

    # Background jobs
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    celery_broker_url: str | None = Field(default=None, alias="CELERY_BROKER_URL")
    celery_result_backend: str | None = Field(default=None, alias="CELERY_RESULT_BACKEND")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("dst_heavy_months")
    @classmethod
    def _validate_months(cls, value: List[int]) -> List[int]:
        for month in value:
            if not 1 <= month <= 12:
                raise ValueError(f"Invalid month in DST_HEAVY_MONTHS: {month}")
        return value

    @property
    def broker_url(self) -> str:
        return self.celery_broker_url or self.redis_url

    @property
    def result_backend(self) -> str:
        return self.celery_result_backend or self.broker_url


settings = Settings()
