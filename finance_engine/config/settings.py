"""
Configuration Management for the Finance Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Every tunable constant of the engine lives here.
Report windows, the recurrence horizon and alert thresholds are explicit
configuration rather than numbers scattered through the report code.
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Engine settings.

    Loads configuration from FINANCE_ENGINE_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    # Report windows
    window_months: int = Field(
        default=6,
        ge=1,
        le=60,
        description="Number of calendar months in trend charts"
    )
    forecast_weeks: int = Field(
        default=8,
        ge=1,
        le=52,
        description="Number of weeks in the cash-flow forecast"
    )

    # Recurrence
    recurrence_max_occurrences: int = Field(
        default=24,
        ge=1,
        le=1000,
        description="Occurrences generated for a recurrence without an end date"
    )

    # Write path
    idempotency_cache_size: int = Field(
        default=256,
        ge=1,
        description="Confirmed submissions remembered to reject double confirmations"
    )

    # List sizes
    recent_movements_limit: int = Field(
        default=5,
        ge=1,
        description="Investment movements shown in the workspace snapshot"
    )
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        description="Transactions shown in the dashboard recent list"
    )
    upcoming_bills_days: int = Field(
        default=7,
        ge=0,
        description="How many days ahead an expense counts as an upcoming bill"
    )
    upcoming_bills_limit: int = Field(
        default=3,
        ge=1,
        description="Upcoming bills shown on the dashboard"
    )

    # Budget alerts (percent of the budget consumed)
    budget_alert_threshold: float = Field(
        default=90.0,
        gt=0.0,
        description="Percent consumed at which a budget warning is raised"
    )
    budget_critical_threshold: float = Field(
        default=95.0,
        gt=0.0,
        description="Percent consumed at which a warning becomes critical"
    )

    @model_validator(mode="after")
    def validate_thresholds(self) -> "EngineSettings":
        """Critical threshold must not sit below the warning threshold."""
        if self.budget_critical_threshold < self.budget_alert_threshold:
            raise ValueError(
                "budget_critical_threshold cannot be below budget_alert_threshold"
            )
        return self


@lru_cache()
def get_settings() -> EngineSettings:
    """
    Get engine settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return EngineSettings()
