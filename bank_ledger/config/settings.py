"""
Configuration Management for Bank Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger's business limits (minimum opening deposit, deposit cap,
password attempts) live next to the storage locations so the whole
behaviour of a deployment can be read in one place.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger store configuration: where records live and business limits."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage locations
    data_dir: Path = Field(
        default=Path("."),
        description="Directory holding the three record files"
    )
    users_file: str = Field(
        default="users.txt",
        description="File name of the user stream"
    )
    accounts_file: str = Field(
        default="accounts.txt",
        description="File name of the account stream"
    )
    history_file: str = Field(
        default="history.txt",
        description="File name of the transaction stream"
    )

    # Business limits
    min_initial_deposit: Decimal = Field(
        default=Decimal("100.00"),
        gt=0,
        description="Minimum deposit required to open an account"
    )
    max_deposit: Decimal = Field(
        default=Decimal("1000000.00"),
        gt=0,
        description="Largest amount accepted by a single deposit"
    )
    max_password_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Old-password attempts allowed per password change"
    )

    # Record formatting
    timestamp_format: str = Field(
        default="%a %b %d %H:%M:%S %Y",
        description="strftime format for transaction timestamps"
    )

    # I/O
    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed stream write is attempted"
    )

    @field_validator('timestamp_format')
    @classmethod
    def validate_timestamp_format(cls, v: str) -> str:
        """Timestamps are stored in a comma-delimited field."""
        if "," in v or "\n" in v:
            raise ValueError("Timestamp format must not contain commas or newlines")
        return v

    @property
    def stream_files(self) -> dict[str, str]:
        """Map of stream name to file name."""
        return {
            "users": self.users_file,
            "accounts": self.accounts_file,
            "history": self.history_file,
        }


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Standard library log level for structlog output"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
