"""
Cancellation policy.

Regular appointments need 24 hours of notice; appointments whose reason for
visit mentions an emergency need 2 hours. Appointments that already started
can never be cancelled through this policy.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from clinic.core import config
from clinic.domain.entities import Appointment
from clinic.domain.intervals import ensure_utc

EMERGENCY_KEYWORD = "emergency"


class CancellationDecision(Enum):
    ALLOWED = "allowed"
    REJECTED_ALREADY_STARTED = "rejected_already_started"
    REJECTED_INSUFFICIENT_NOTICE = "rejected_insufficient_notice"

    @property
    def allowed(self) -> bool:
        return self is CancellationDecision.ALLOWED

    @property
    def message(self) -> str:
        if self is CancellationDecision.REJECTED_ALREADY_STARTED:
            return "appointment has already started"
        if self is CancellationDecision.REJECTED_INSUFFICIENT_NOTICE:
            return "insufficient notice period"
        return "cancellation allowed"


def is_emergency(reason_for_visit: Optional[str]) -> bool:
    return bool(reason_for_visit) and EMERGENCY_KEYWORD in reason_for_visit.lower()


def required_notice(appointment: Appointment) -> timedelta:
    if is_emergency(appointment.reason_for_visit):
        return timedelta(hours=config.EMERGENCY_CANCELLATION_NOTICE_HOURS)
    return timedelta(hours=config.REGULAR_CANCELLATION_NOTICE_HOURS)


def evaluate_cancellation(appointment: Appointment, now: datetime) -> CancellationDecision:
    now = ensure_utc(now)
    if appointment.start_time <= now:
        return CancellationDecision.REJECTED_ALREADY_STARTED
    if appointment.start_time - now < required_notice(appointment):
        return CancellationDecision.REJECTED_INSUFFICIENT_NOTICE
    return CancellationDecision.ALLOWED


def can_cancel(appointment: Appointment, now: datetime) -> bool:
    """Pure predicate; the caller performs the status change."""
    return evaluate_cancellation(appointment, now).allowed
