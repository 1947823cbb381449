# backend/classbook/core/config.py
from decimal import Decimal
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    app_name: str = Field(default="classbook", description="Service name used in logs and metrics")
    environment: str = Field(default="local", alias="ENVIRONMENT")
    database_url: str = Field(
        default="sqlite:///./classbook.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL of the transactional store",
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    is_testing: bool = Field(default_factory=is_running_tests)

    # Cancellation policy fallback when a teacher has no active policy
    default_cancellation_hours: int = Field(
        default=24,
        ge=0,
        description="Free-cancellation threshold in hours before class",
    )
    default_charge_percentage: Decimal = Field(
        default=Decimal("50"),
        description="Share of the service price charged for late cancellations",
    )
    default_allow_amnesty: bool = Field(default=True)
    default_class_price: Decimal = Field(
        default=Decimal("100.00"),
        description="Price used for late-cancellation charges when no priced service is attached",
    )

    # Occurrence expansion and open-slot stepping
    max_expansion_window_days: int = Field(
        default=400,
        ge=1,
        description="Largest window a single calendar or expansion request may cover",
    )
    slot_step_minutes: int = Field(
        default=30,
        ge=5,
        description="Spacing between candidate slots offered to students",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("default_charge_percentage", mode="before")
    @classmethod
    def _validate_percentage(cls, value: object) -> Decimal:
        percentage = Decimal(str(value))
        if percentage < 0 or percentage > 100:
            raise ValueError("default_charge_percentage must be between 0 and 100")
        return percentage

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        normalized = str(value or "INFO").strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return normalized

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
