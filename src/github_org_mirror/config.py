"""Settings for the mirror, read from the environment and ``.env``.

Nested groups use ``__`` in variable names, e.g. ``SYNC__COMMIT_BATCH_SIZE=10``
or ``RETRY__MAX_ATTEMPTS=5``.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryConfig(BaseModel):
    """Budgets for the GraphQL request executor.

    Transient failures back off exponentially; rate-limit responses wait
    for the computed reset and are counted separately.
    """

    max_attempts: int = Field(3, ge=1, le=20, description="Attempts before a transient failure propagates")
    base_delay_ms: int = Field(500, ge=0, description="First transient backoff delay")
    backoff_factor: float = Field(2.0, ge=1.0, description="Backoff multiplier per failed attempt")
    max_rate_limit_retries: int = Field(10, ge=0, description="Rate-limit waits allowed per request")
    default_rate_limit_wait_ms: int = Field(
        60_000, ge=0, description="Fallback rate-limit wait, also the minimum wait"
    )


class SyncConfig(BaseModel):
    """Batching and paging used by a sync run."""

    commit_batch_size: int = Field(25, ge=1, le=1000, description="Upserts per committed batch")
    page_size: int = Field(50, ge=1, le=100, description="first: argument of top-level connections")
    backfill_chunk_days: int = Field(1, ge=1, description="Width of one backfill chunk in days")

    @property
    def backfill_chunk(self) -> timedelta:
        return timedelta(days=self.backfill_chunk_days)


class LoggingConfig(BaseModel):
    """Optional rotating file sink (console logging is always on)."""

    log_file: str | None = Field(None, description="Path of the DEBUG file sink")
    rotation: str = Field("10 MB", description="Loguru rotation, e.g. '10 MB' or '1 day'")
    retention: str = Field("7 days", description="Loguru retention for rotated files")
    serialize: bool = Field(False, description="Write JSON lines to the file sink")


class Settings(BaseSettings):
    """Mirror settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(
        "sqlite+aiosqlite:///./github_org_mirror.db",
        description="SQLAlchemy async URL of the mirror database",
    )

    github_token: str = Field("", description="Token used for GraphQL requests")
    github_org: str = Field("", description="Login of the organization to mirror")
    target_project_name: str = Field(
        "", description="Project whose status changes are recorded; empty turns tracking off"
    )

    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    retry: RetryConfig = Field(default_factory=RetryConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
