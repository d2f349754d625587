"""
Domain entities - Pure business logic, no framework dependencies.

Following SOLID principles:
- Single Responsibility: Each entity represents one business concept
- Open/Closed: Entities can be extended without modification
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from clinic.core.exceptions import InvalidAppointmentStatusError
from clinic.domain.intervals import (
    TimeInterval,
    ensure_utc,
    intervals_overlap,
    since_midnight,
)


class ClinicRoles:
    """Role names carried in access tokens."""

    ADMIN = "Admin"
    MANAGER = "Manager"
    DOCTOR = "Doctor"
    NURSE = "Nurse"
    RECEPTIONIST = "Receptionist"
    PATIENT = "Patient"

    STAFF = (ADMIN, MANAGER, DOCTOR, NURSE, RECEPTIONIST)
    ALL = STAFF + (PATIENT,)


class AppointmentStatus(Enum):
    SCHEDULED = "Scheduled"
    CONFIRMED = "Confirmed"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


_ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


class Weekday(Enum):
    """Day of week numbered like ``datetime.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class SchedulingDecision(Enum):
    """Outcome of a scheduling attempt."""

    ACCEPTED = "accepted"
    REJECTED_PAST_DATE = "rejected_past_date"
    REJECTED_CONFLICT = "rejected_conflict"
    REJECTED_OUTSIDE_HOURS = "rejected_outside_hours"
    REJECTED_NO_SCHEDULE = "rejected_no_schedule"

    @property
    def accepted(self) -> bool:
        return self is SchedulingDecision.ACCEPTED

    @property
    def message(self) -> str:
        return _SCHEDULING_MESSAGES[self]


_SCHEDULING_MESSAGES = {
    SchedulingDecision.ACCEPTED: "time slot is available",
    SchedulingDecision.REJECTED_PAST_DATE: "appointment must be in the future",
    SchedulingDecision.REJECTED_CONFLICT: "time slot conflicts with another appointment",
    SchedulingDecision.REJECTED_OUTSIDE_HOURS: "time slot is outside the doctor's working hours",
    SchedulingDecision.REJECTED_NO_SCHEDULE: "doctor has no configured availability",
}


@dataclass
class DoctorSchedule:
    """Recurring weekly availability window for a doctor."""

    day_of_week: Weekday = Weekday.MONDAY
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_available: bool = True
    slot_duration_minutes: int = 30
    id: Optional[int] = None
    doctor_id: Optional[int] = None

    def __post_init__(self):
        """Validate business rules."""
        if not isinstance(self.day_of_week, Weekday):
            self.day_of_week = Weekday(self.day_of_week)
        if self.start_time >= self.end_time:
            raise ValueError("Schedule start must be before its end")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("Break start and end must be given together")
        if self.break_start is not None and not (
            self.start_time <= self.break_start < self.break_end <= self.end_time
        ):
            raise ValueError("Break must lie within working hours")

    @property
    def has_break(self) -> bool:
        return self.break_start is not None

    def matches(self, when: datetime) -> bool:
        """True if this entry is an available window on ``when``'s weekday."""
        return self.is_available and self.day_of_week.value == ensure_utc(when).weekday()

    def admits(self, start_of_day: timedelta, duration: timedelta) -> bool:
        """Check a proposed ``[start, start+duration)`` given as offsets from midnight.

        The interval must lie inside working hours, must not overlap the
        break, and must end on the same calendar day.
        """
        end_of_day = start_of_day + duration
        if end_of_day > timedelta(days=1):
            return False
        if start_of_day < since_midnight(self.start_time):
            return False
        if end_of_day > since_midnight(self.end_time):
            return False
        if self.has_break:
            break_start = since_midnight(self.break_start)
            break_length = since_midnight(self.break_end) - break_start
            if intervals_overlap(start_of_day, duration, break_start, break_length):
                return False
        return True


@dataclass
class Doctor:
    """Domain entity for a doctor and their weekly schedule."""

    id: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    specialization: str = "General"
    consultation_fee: Decimal = Decimal("0")
    is_active: bool = True
    schedules: List[DoctorSchedule] = field(default_factory=list)

    def __post_init__(self):
        """Validate business rules."""
        if not isinstance(self.consultation_fee, Decimal):
            self.consultation_fee = Decimal(str(self.consultation_fee))
        if self.consultation_fee < 0:
            raise ValueError("Consultation fee cannot be negative")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Patient:
    """Domain entity representing a patient."""

    id: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Appointment:
    """Domain entity for Appointment business logic.

    The appointment occupies ``[start_time, start_time + duration)``.
    Status changes go through the lifecycle methods, which enforce the
    allowed transitions.
    """

    id: Optional[int] = None
    doctor_id: int = 0
    patient_id: int = 0
    start_time: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    reason_for_visit: Optional[str] = None
    appointment_type: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    consultation_fee: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate business rules."""
        if self.doctor_id <= 0:
            raise ValueError("Valid doctor_id is required")
        if self.patient_id <= 0:
            raise ValueError("Valid patient_id is required")
        if self.start_time is None:
            raise ValueError("Start time is required")
        if self.duration <= timedelta(0):
            raise ValueError("Duration must be positive")
        if not isinstance(self.status, AppointmentStatus):
            self.status = AppointmentStatus(self.status)
        self.start_time = ensure_utc(self.start_time)

    @property
    def end_time(self) -> datetime:
        return self.start_time + self.duration

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval.from_duration(self.start_time, self.duration)

    @property
    def is_cancelled(self) -> bool:
        return self.status is AppointmentStatus.CANCELLED

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    @property
    def fee_type(self) -> Optional[str]:
        """Appointment type used for pricing; the visit reason stands in when unset."""
        return self.appointment_type or self.reason_for_visit

    def can_transition_to(self, status: AppointmentStatus) -> bool:
        return status in _ALLOWED_TRANSITIONS[self.status]

    def _transition(self, status: AppointmentStatus, at: Optional[datetime]) -> None:
        if not self.can_transition_to(status):
            raise InvalidAppointmentStatusError(self.status, status)
        self.status = status
        if at is not None:
            self.updated_at = at

    def cancel(self, reason: Optional[str], at: Optional[datetime] = None) -> None:
        self._transition(AppointmentStatus.CANCELLED, at)
        self.cancellation_reason = reason

    def confirm(self, at: Optional[datetime] = None) -> None:
        self._transition(AppointmentStatus.CONFIRMED, at)

    def start(self, at: Optional[datetime] = None) -> None:
        self._transition(AppointmentStatus.IN_PROGRESS, at)

    def complete(self, notes: Optional[str] = None, at: Optional[datetime] = None) -> None:
        self._transition(AppointmentStatus.COMPLETED, at)
        if notes:
            self.notes = f"{self.notes}\n{notes}" if self.notes else notes
