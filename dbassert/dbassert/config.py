"""dbassert configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbassert.lettercase.policies import CaseComparison, CaseConversion

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Library settings loaded from environment variables with DBASSERT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="DBASSERT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Letter cases
    table_case_conversion: CaseConversion = CaseConversion.NO
    table_case_comparison: CaseComparison = CaseComparison.IGNORE
    column_case_conversion: CaseConversion = CaseConversion.UPPER
    column_case_comparison: CaseComparison = CaseComparison.IGNORE
    primary_key_case_conversion: CaseConversion = CaseConversion.UPPER
    primary_key_case_comparison: CaseComparison = CaseComparison.IGNORE

    # Logging
    log_level: str = "WARNING"
    structured_logging: bool = False

    # Output
    render_max_width: int = 200

    # Telemetry
    profiling_enabled: bool = True

    @field_validator(
        "table_case_conversion",
        "column_case_conversion",
        "primary_key_case_conversion",
        "table_case_comparison",
        "column_case_comparison",
        "primary_key_case_comparison",
        mode="before",
    )
    @classmethod
    def upper_policy_names(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def check_log_level(cls, v: object) -> str:
        level = str(v).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings: column letter case %s/%s",
            settings.column_case_conversion.value,
            settings.column_case_comparison.value,
        )

    return settings
