"""
Centralized configuration with environment variable overrides.

Backend endpoints, store timezone, and slot policies are configurable
here. Nothing is hardcoded in resolver, committer, or presenter logic.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from slotbook.logging_context import session_log_handler

load_dotenv()

logger = logging.getLogger(__name__)

RESERVATION_STATUSES = ("pending", "confirmed")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag (1/0, true/false, yes/no) from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BackendConfig:
    """Connection settings for the hosted persistence/query service."""

    url: str = os.getenv("BACKEND_URL", "http://localhost:54321")
    api_key: str = os.getenv("BACKEND_API_KEY", "")
    timeout_sec: float = _safe_float("BACKEND_TIMEOUT_SEC", "10.0")
    bookings_table: str = os.getenv("BOOKINGS_TABLE", "bookings")


@dataclass(frozen=True)
class BookingConfig:
    """Slot and reservation policies."""

    store_timezone: str = os.getenv("STORE_TIMEZONE", "UTC")
    allow_overnight_slots: bool = _safe_bool("ALLOW_OVERNIGHT_SLOTS", "false")
    default_reservation_status: str = os.getenv("DEFAULT_RESERVATION_STATUS", "pending")
    max_notes_length: int = _safe_int("MAX_NOTES_LENGTH", "2000")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "slotbook")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not config.backend.url.startswith(("http://", "https://")):
        raise ValueError(
            f"BACKEND_URL must be an http(s) URL, got {config.backend.url!r}"
        )
    if config.backend.timeout_sec <= 0:
        raise ValueError(
            f"BACKEND_TIMEOUT_SEC must be > 0, got {config.backend.timeout_sec}"
        )
    try:
        ZoneInfo(config.booking.store_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"STORE_TIMEZONE is not a known IANA zone: {config.booking.store_timezone!r}"
        ) from None
    if config.booking.default_reservation_status not in RESERVATION_STATUSES:
        raise ValueError(
            f"DEFAULT_RESERVATION_STATUS must be one of {RESERVATION_STATUSES}, "
            f"got {config.booking.default_reservation_status!r}"
        )
    if config.booking.max_notes_length < 1:
        raise ValueError(
            f"MAX_NOTES_LENGTH must be >= 1, got {config.booking.max_notes_length}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[session_log_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
