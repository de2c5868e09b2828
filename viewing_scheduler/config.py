"""
Centralized configuration with environment variable overrides.

Scheduling constants (slot length, booking horizon, reschedule reason)
are configurable here. Nothing is hardcoded in the slot generator or
the booking engine.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from viewing_scheduler.utils import parse_utc_offset

load_dotenv()

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var (true/false, yes/no, 1/0, on/off)."""
    raw = os.getenv(env_var, default)
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and booking lifecycle settings."""

    slot_duration_minutes: int = _safe_int("SLOT_DURATION_MINUTES", "30")
    booking_horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "60")
    reschedule_reason: str = os.getenv("RESCHEDULE_REASON", "Rescheduled")
    verify_slot_before_insert: bool = _safe_bool("VERIFY_SLOT_BEFORE_INSERT", "true")
    # Blank means the host's local time
    agent_utc_offset: str = os.getenv("AGENT_UTC_OFFSET", "")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "viewing-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    scheduling = config.scheduling
    if not 1 <= scheduling.slot_duration_minutes <= MINUTES_PER_DAY:
        raise ValueError(
            f"SLOT_DURATION_MINUTES must be between 1 and {MINUTES_PER_DAY}, "
            f"got {scheduling.slot_duration_minutes}"
        )
    if scheduling.booking_horizon_days < 1:
        raise ValueError(
            f"BOOKING_HORIZON_DAYS must be >= 1, got {scheduling.booking_horizon_days}"
        )
    if not scheduling.reschedule_reason.strip():
        raise ValueError("RESCHEDULE_REASON must not be empty")
    try:
        parse_utc_offset(scheduling.agent_utc_offset)
    except ValueError as exc:
        raise ValueError(f"AGENT_UTC_OFFSET: {exc}") from None


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded for '%s' (slot=%d min, horizon=%d days)",
        config.app_name,
        config.scheduling.slot_duration_minutes,
        config.scheduling.booking_horizon_days,
    )
    return config


# Singleton instance
settings = load_config()
