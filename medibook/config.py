"""
Centralized configuration with environment variable overrides.

Retry limits, booking horizon, storage location, and spoken clinic
details are configurable here. Nothing is hardcoded in the dialogue
handlers or the booking tools.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ClinicConfig:
    """Spoken clinic details used when the directory has no better answer."""

    assistant_name: str = os.getenv("ASSISTANT_NAME", "your AI assistant")
    hours_weekday: str = os.getenv(
        "CLINIC_HOURS_WEEKDAY", "Monday through Friday from 9 AM to 6 PM"
    )
    hours_weekend: str = os.getenv(
        "CLINIC_HOURS_WEEKEND", "Saturday from 9 AM to 2 PM, and we're closed on Sundays"
    )
    fallback_phone: str = os.getenv("CLINIC_FALLBACK_PHONE", "our main number")


@dataclass(frozen=True)
class GuardrailConfig:
    """Thresholds for re-prompting, escalation and scheduling windows."""

    max_slot_retries: int = _safe_int("MAX_SLOT_RETRIES", "3")
    max_confirmation_attempts: int = _safe_int("MAX_CONFIRMATION_ATTEMPTS", "2")
    time_match_tolerance_minutes: int = _safe_int("TIME_MATCH_TOLERANCE_MINUTES", "30")
    booking_horizon_months: int = _safe_int("BOOKING_HORIZON_MONTHS", "3")
    max_slots_announced: int = _safe_int("MAX_SLOTS_ANNOUNCED", "5")


@dataclass(frozen=True)
class StorageConfig:
    """Database and session persistence settings."""

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///medibook.db")
    session_ttl_seconds: int = _safe_int("SESSION_TTL_SECONDS", "900")
    echo_sql: bool = os.getenv("ECHO_SQL", "false").lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    clinic: ClinicConfig = field(default_factory=ClinicConfig)
    guardrails: GuardrailConfig = field(default_factory=GuardrailConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "clinic-booking-agent")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.guardrails.max_slot_retries < 1:
        raise ValueError(
            f"MAX_SLOT_RETRIES must be >= 1, got {config.guardrails.max_slot_retries}"
        )
    if config.guardrails.max_confirmation_attempts < 1:
        raise ValueError(
            "MAX_CONFIRMATION_ATTEMPTS must be >= 1, "
            f"got {config.guardrails.max_confirmation_attempts}"
        )
    if not 0 <= config.guardrails.time_match_tolerance_minutes <= 180:
        raise ValueError(
            "TIME_MATCH_TOLERANCE_MINUTES must be between 0 and 180, "
            f"got {config.guardrails.time_match_tolerance_minutes}"
        )
    if config.guardrails.booking_horizon_months < 1:
        raise ValueError(
            "BOOKING_HORIZON_MONTHS must be >= 1, "
            f"got {config.guardrails.booking_horizon_months}"
        )
    if config.guardrails.max_slots_announced < 1:
        raise ValueError(
            f"MAX_SLOTS_ANNOUNCED must be >= 1, got {config.guardrails.max_slots_announced}"
        )
    if config.storage.session_ttl_seconds < 1:
        raise ValueError(
            f"SESSION_TTL_SECONDS must be >= 1, got {config.storage.session_ttl_seconds}"
        )
    if not config.storage.database_url:
        raise ValueError("DATABASE_URL must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.agent_name)
    return config


# Singleton instance
settings = load_config()
