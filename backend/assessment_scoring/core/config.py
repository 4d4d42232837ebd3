"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Self


class Settings(BaseSettings):
    """Scoring core settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Assessment Scoring Core"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Database (pool settings are read directly by models.base)
    DATABASE_URL: str = "sqlite:///./assessment_scoring.db"

    # Submission policy
    # Attempts started while a test was active may be submitted after the
    # window closes. Set to True to re-check is_active/start/end on submit.
    ENFORCE_ACTIVITY_WINDOW_ON_SUBMIT: bool = False

    # Partial credit
    OVER_SELECTION_PENALTY_FACTOR: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Fraction of a per-correct-option share deducted per wrongly selected option",
    )

    # Battery weights
    BATTERY_WEIGHT_TOTAL: float = Field(
        default=100.0,
        description="Sum that explicit battery test weights must add up to",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_battery_weight_total(self) -> Self:
        """BATTERY_WEIGHT_TOTAL must be positive so equal splits are defined."""
        if self.BATTERY_WEIGHT_TOTAL <= 0:
            raise ValueError(
                f"BATTERY_WEIGHT_TOTAL must be positive, got {self.BATTERY_WEIGHT_TOTAL}"
            )
        return self


settings = Settings()
