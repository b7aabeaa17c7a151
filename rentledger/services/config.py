"""Application configuration from environment variables and .env file."""

import logging
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Pydantic automatically loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file in the working directory
    """

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./rentledger.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/rentledger.log", description="Server log file path")

    # Locale used for receipts and formatted amounts
    locale: str = Field(default="es_AR", description="Babel locale identifier")

    # Currency conversion convention: rates are quoted as local units per one
    # base unit. local -> base divides by the rate, base -> local multiplies.
    base_currency: str = Field(default="USD", description="Base currency for rate quotes")
    default_rate_source: str = Field(default="oficial", description="Rate source for suggestions")
    default_rate_direction: str = Field(default="sell", description="Rate side for suggestions")

    # Rounding tolerance for balance comparisons
    amount_tolerance: Decimal = Field(default=Decimal("0.01"))

    def validate_currency(self) -> None:
        """Validate the configured base currency looks like an ISO 4217 code."""
        if len(self.base_currency) != 3 or not self.base_currency.isalpha():
            raise ValueError(f"BASE_CURRENCY must be a 3-letter ISO code, got {self.base_currency!r}")


# Lazy loader so tests can set environment variables before first use
_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        _settings_instance.validate_currency()
        logger.debug("Settings loaded: database_url=%s", _settings_instance.database_url)
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings (next get_settings() re-reads the environment)."""
    global _settings_instance
    _settings_instance = None


__all__ = ["Settings", "get_settings", "reset_settings"]
