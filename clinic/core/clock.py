"""
Clock implementations.

Scheduling and cancellation rules depend on "now". Services receive an
``IClock`` instead of calling ``datetime.now()`` so tests stay deterministic.
"""

from datetime import datetime, timedelta, timezone

from clinic.domain.interfaces import IClock


class SystemClock(IClock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(IClock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta
