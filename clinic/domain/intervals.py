"""
Half-open time intervals and the overlap rule shared by conflict detection,
working-hours checks and next-slot search.

Two intervals ``[a, a+da)`` and ``[b, b+db)`` overlap iff
``a < b+db and b < a+da``. Touching endpoints do not overlap.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Union


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def time_of_day(value: datetime) -> timedelta:
    """Offset of ``value`` from midnight of its own (UTC) day."""
    value = ensure_utc(value)
    return timedelta(
        hours=value.hour,
        minutes=value.minute,
        seconds=value.second,
        microseconds=value.microsecond,
    )


def since_midnight(value: time) -> timedelta:
    """Convert a wall-clock ``time`` into an offset from midnight."""
    return timedelta(
        hours=value.hour,
        minutes=value.minute,
        seconds=value.second,
        microseconds=value.microsecond,
    )


def at_time(day: date, value: time) -> datetime:
    """UTC instant for ``value`` on ``day``."""
    return datetime.combine(day, value, tzinfo=timezone.utc)


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError("Interval end must not precede its start")

    @classmethod
    def from_duration(cls, start: datetime, duration: timedelta) -> "TimeInterval":
        return cls(start=start, end=start + duration)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return intervals_overlap(self.start, self.duration, other.start, other.duration)


def intervals_overlap(
    a_start: Union[datetime, timedelta],
    a_duration: timedelta,
    b_start: Union[datetime, timedelta],
    b_duration: timedelta,
) -> bool:
    """Half-open overlap test on start/duration pairs.

    Starts may be instants or offsets from midnight, as long as both sides
    use the same kind.
    """
    return a_start < b_start + b_duration and b_start < a_start + a_duration


def find_conflicts(
    appointments: Iterable,
    interval: TimeInterval,
    exclude_id: Optional[int] = None,
) -> List:
    """Return the appointments that block ``interval``.

    Cancelled appointments and the appointment identified by ``exclude_id``
    never block. Callers are expected to pass a single doctor's appointments.
    """
    conflicts = []
    for appointment in appointments:
        if appointment.is_cancelled:
            continue
        if exclude_id is not None and appointment.id == exclude_id:
            continue
        if appointment.interval.overlaps(interval):
            conflicts.append(appointment)
    return conflicts
