"""
Centralized configuration module for application-wide settings.

This module provides centralized configuration for timezone handling and
the scheduling policy constants, read once from environment variables.
"""

import logging
import os
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application display timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'Europe/Lisbon', 'UTC')
            Default: 'UTC'

    Note:
        Stored timestamps and all scheduling arithmetic are UTC. APP_TZ is
        only used when rendering times for humans (logs, messages).
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


def log_timezone_config():
    """Log the active timezone configuration at startup."""
    logger.info(
        "Timezone configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "tz_env_var": os.getenv("TZ", "UTC"),
            }
        },
    )


# ===========================
# Scheduling Policy Configuration
# ===========================


def _get_positive_int(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back on bad input."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning(
            f"Invalid integer '{raw}' for {name}; using default {default}",
            extra={"context": {"variable": name, "default": default}},
        )
        return default
    if value <= 0:
        logger.warning(
            f"Non-positive value {value} for {name}; using default {default}",
            extra={"context": {"variable": name, "default": default}},
        )
        return default
    return value


def get_slot_step_minutes() -> int:
    """
    Step between candidate start times in next-slot search.

    Environment Variables:
        SLOT_STEP_MINUTES: Default 15
    """
    return _get_positive_int("SLOT_STEP_MINUTES", 15)


def get_search_horizon_days() -> int:
    """
    Number of calendar days scanned by next-slot search.

    Environment Variables:
        SEARCH_HORIZON_DAYS: Default 30
    """
    return _get_positive_int("SEARCH_HORIZON_DAYS", 30)


def get_min_lead_time_minutes() -> int:
    """
    Minimum advance notice for new bookings, enforced by request validation.

    Environment Variables:
        MIN_LEAD_TIME_MINUTES: Default 30
    """
    return _get_positive_int("MIN_LEAD_TIME_MINUTES", 30)


def get_max_appointment_minutes() -> int:
    """
    Longest bookable appointment, enforced by request validation.

    Environment Variables:
        MAX_APPOINTMENT_MINUTES: Default 480 (8 hours)
    """
    return _get_positive_int("MAX_APPOINTMENT_MINUTES", 480)


def get_regular_cancellation_notice_hours() -> int:
    """
    Notice required to cancel a regular appointment.

    Environment Variables:
        REGULAR_CANCELLATION_NOTICE_HOURS: Default 24
    """
    return _get_positive_int("REGULAR_CANCELLATION_NOTICE_HOURS", 24)


def get_emergency_cancellation_notice_hours() -> int:
    """
    Notice required to cancel an appointment booked for an emergency.

    Environment Variables:
        EMERGENCY_CANCELLATION_NOTICE_HOURS: Default 2
    """
    return _get_positive_int("EMERGENCY_CANCELLATION_NOTICE_HOURS", 2)


SLOT_STEP_MINUTES = get_slot_step_minutes()
SEARCH_HORIZON_DAYS = get_search_horizon_days()
MIN_LEAD_TIME_MINUTES = get_min_lead_time_minutes()
MAX_APPOINTMENT_MINUTES = get_max_appointment_minutes()
REGULAR_CANCELLATION_NOTICE_HOURS = get_regular_cancellation_notice_hours()
EMERGENCY_CANCELLATION_NOTICE_HOURS = get_emergency_cancellation_notice_hours()

# Length of the window checked by the emergency availability rule
EMERGENCY_WINDOW_HOURS = 2


def log_scheduling_config():
    """Log the active scheduling policy at startup."""
    logger.info(
        "Scheduling configuration initialized",
        extra={
            "context": {
                "slot_step_minutes": SLOT_STEP_MINUTES,
                "search_horizon_days": SEARCH_HORIZON_DAYS,
                "min_lead_time_minutes": MIN_LEAD_TIME_MINUTES,
                "max_appointment_minutes": MAX_APPOINTMENT_MINUTES,
                "regular_cancellation_notice_hours": REGULAR_CANCELLATION_NOTICE_HOURS,
                "emergency_cancellation_notice_hours": EMERGENCY_CANCELLATION_NOTICE_HOURS,
            }
        },
    )


# ===========================
# Logging Configuration
# ===========================


def _get_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


def get_log_level() -> str:
    """LOG_LEVEL: Default 'INFO'."""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_json() -> bool:
    """LOG_JSON: Emit JSON on the console. Default 'false'."""
    return _get_flag("LOG_JSON", "false")


def get_log_to_file() -> bool:
    """LOG_TO_FILE: Write rotating log files under logs/. Default 'true'."""
    return _get_flag("LOG_TO_FILE", "true")


def get_slow_query_ms():
    """LOG_SLOW_QUERY_MS: Log SQL statements slower than this. Unset disables."""
    if not os.getenv("LOG_SLOW_QUERY_MS", "").strip():
        return None
    return _get_positive_int("LOG_SLOW_QUERY_MS", 500)


def get_metrics_enabled() -> bool:
    """METRICS_ENABLED: Expose Prometheus /metrics. Default 'true'."""
    return _get_flag("METRICS_ENABLED", "true")
