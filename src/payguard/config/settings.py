"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ErasureSettings(BaseModel):
    """Tunables for right-to-erasure execution."""

    block_on_any_legal_hold: bool = True
    """Reject the whole request when any record in scope is under hold."""

    delete_batch_size: int = 100
    """Maximum ids passed to a single gateway delete call."""

    pseudonym_token_bytes: int = 8
    """Random bytes appended to each pseudonym token."""


class RetentionSettings(BaseModel):
    """Tunables for scheduled retention jobs."""

    batch_size: int = 100
    """Records deleted per batch; progress is persisted after each one."""

    employee_records_months: int = 84
    """Default retention period for inactive employee records."""

    payroll_data_months: int = 72
    """Default retention period for payroll results."""

    check_interval_seconds: int = 3600
    """How often the background scheduler looks for due jobs."""

    run_scheduler: bool = True
    """Start the background scheduler with the API."""


class ExportSettings(BaseModel):
    """Tunables for personal data exports."""

    export_directory: str = "exports"
    """Directory that generated export files are written to."""

    expiry_days: int = 30
    """Default number of days an export stays downloadable."""

    history_months: int = 12
    """Window applied to dated categories when history is excluded."""

    audit_trail_limit: int = 50
    """Maximum audit log rows included in an export."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    DEBUG: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./payguard.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Compliance Configuration
    erasure: ErasureSettings = ErasureSettings()
    retention: RetentionSettings = RetentionSettings()
    export: ExportSettings = ExportSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
