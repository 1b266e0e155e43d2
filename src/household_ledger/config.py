"""Centralized configuration management using pydantic-settings.

Configuration is loaded from environment variables with sensible defaults.
All settings can be overridden via environment variables or a .env file.
"""

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from household_ledger.domain.value_objects import Currency


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development. Override via
    environment variables (prefixed with HHL_) or .env file.

    Examples:
        HHL_DEFAULT_CURRENCY=EUR
        HHL_DISTRIBUTION_LIMIT_VALUE=5000
        HHL_LOG_LEVEL=DEBUG
        HHL_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_prefix="HHL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Household Ledger Analysis"
    environment: Environment = Environment.DEVELOPMENT

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format: 'json' for production, 'console' for development",
    )

    # Analysis
    default_currency: Currency = Field(
        default=Currency.GBP,
        description="Reporting currency used when the dataset does not name one",
    )
    distribution_limit_value: Decimal = Field(
        default=Decimal("3000"),
        gt=0,
        description="Capital distributions must exceed this amount to be treated as large",
    )
    distribution_limit_rate: Decimal = Field(
        default=Decimal("0.05"),
        description="Capital distributions must exceed this share of the holding value to be large",
    )
    tax_year_start_month: int = Field(default=4, ge=1, le=12)
    tax_year_start_day: int = Field(default=6, ge=1, le=31)

    @field_validator("distribution_limit_rate", mode="after")
    @classmethod
    def validate_distribution_limit_rate(cls, v: Decimal) -> Decimal:
        """The rate is a fraction of the holding value, so it must lie in (0, 1)."""
        if not Decimal("0") < v < Decimal("1"):
            raise ValueError(
                f"distribution_limit_rate must be between 0 and 1 (exclusive), got {v}"
            )
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()
