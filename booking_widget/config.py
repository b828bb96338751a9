"""
Centralized configuration with environment variable overrides.

API endpoints, booking-window fallbacks and display preferences are
configurable here. Nothing is hardcoded in the projector, cache or
state machine.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

TIME_FORMATS = ("12h", "24h")


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


@dataclass(frozen=True)
class ApiConfig:
    """Public booking API location and HTTP behaviour."""

    base_url: str = os.getenv("BOOKING_API_BASE_URL", "http://localhost:8000/api/v1/public")
    timeout_sec: float = _safe_float("BOOKING_API_TIMEOUT", "10.0")


@dataclass(frozen=True)
class BookingConfig:
    """Booking-window fallbacks and slot display preferences."""

    default_max_days_ahead: int = _safe_int("BOOKING_DEFAULT_MAX_DAYS_AHEAD", "60")
    time_format: str = os.getenv("BOOKING_TIME_FORMAT", "12h")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    api: ApiConfig = field(default_factory=ApiConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    default_timezone: str = os.getenv("WIDGET_DEFAULT_TIMEZONE", "UTC")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    widget_name: str = os.getenv("WIDGET_NAME", "booking-widget")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.api.timeout_sec <= 0:
        raise ValueError(
            f"BOOKING_API_TIMEOUT must be > 0, got {config.api.timeout_sec}"
        )
    if not config.api.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"BOOKING_API_BASE_URL must be an http(s) URL, got {config.api.base_url!r}"
        )
    if config.booking.default_max_days_ahead < 1:
        raise ValueError(
            "BOOKING_DEFAULT_MAX_DAYS_AHEAD must be >= 1, "
            f"got {config.booking.default_max_days_ahead}"
        )
    if config.booking.time_format not in TIME_FORMATS:
        raise ValueError(
            f"BOOKING_TIME_FORMAT must be one of {TIME_FORMATS}, "
            f"got {config.booking.time_format!r}"
        )
    try:
        ZoneInfo(config.default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"WIDGET_DEFAULT_TIMEZONE is not a known timezone: {config.default_timezone!r}"
        ) from None


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.widget_name)
    return config


# Singleton instance
settings = load_config()
