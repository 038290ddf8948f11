"""
Configuration Management for bbucks

Settings are read from BBUCKS_* environment variables (or .env) with pydantic-settings.

DESIGN DECISION: Configuration lives only in this module.
The ledger core takes no configuration at all; only the storage,
chat command and UI layers read these settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Where the ledger log lives and how chat commands build entries."""

    model_config = SettingsConfigDict(
        env_prefix="BBUCKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    ledger_path: Optional[Path] = Field(
        default=None,
        description="Path to the ledger log file"
    )
    audit_log_path: Optional[Path] = Field(
        default=None,
        description="Path to the JSONL audit log (optional)"
    )
    bot_channel: Optional[str] = Field(
        default=None,
        description="Channel where public messages are posted"
    )

    treasury_user: str = Field(
        default="universe",
        min_length=1,
        description="User that funds claims and receives destroyed funds"
    )
    days_to_mature: int = Field(
        default=1,
        ge=0,
        le=365,
        description="How many days before claims mature"
    )

    @field_validator("treasury_user")
    @classmethod
    def validate_treasury_user(cls, v: str) -> str:
        """User names are single log tokens."""
        if any(c.isspace() for c in v):
            raise ValueError("Treasury user name cannot contain whitespace")
        return v


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BBUCKS_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum log level"
    )


class Settings(BaseSettings):
    """
    Entry point for every settings group.
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
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings. Tests call get_settings.cache_clear() after changing the environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings group.

    Returns {group: loaded_ok}, plus "<group>_error" messages for failures
    and "ledger_storage" telling whether a ledger file is configured.
    """
    results = {}

    settings = get_settings()

    try:
        ledger = settings.ledger
        results["ledger"] = True
        results["ledger_storage"] = ledger.ledger_path is not None
    except ValidationError as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.logging
        results["logging"] = True
    except ValidationError as e:
        results["logging"] = False
        results["logging_error"] = str(e)

    return results
