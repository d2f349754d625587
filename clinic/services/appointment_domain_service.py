"""
Appointment domain service: scheduling policy, next-slot search, fees and
cancellation rules.

The service performs no writes. Its only I/O is the conflict query on the
appointment reader and the schedule lookup on the doctor reader; errors from
either propagate unchanged.
"""

import time as perf_time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from clinic.core import config
from clinic.core.clock import SystemClock
from clinic.core.exceptions import SlotSearchCancelledError
from clinic.core.logging_config import get_logger, log_performance
from clinic.domain.cancellation import (
    CancellationDecision,
    can_cancel,
    evaluate_cancellation,
)
from clinic.domain.entities import Appointment, Doctor, SchedulingDecision
from clinic.domain.fees import FeeQuote, calculate_fee
from clinic.domain.interfaces import IAppointmentReader, IClock, IDoctorReader
from clinic.domain.intervals import TimeInterval, at_time, ensure_utc, time_of_day

logger = get_logger(__name__)


class AppointmentDomainService:
    """Domain service for appointment business rules.

    This service demonstrates:
    - Single Responsibility: Only scheduling decisions, no persistence
    - Dependency Inversion: Reads through interfaces and an injected clock
    """

    def __init__(
        self,
        appointment_reader: IAppointmentReader,
        doctor_reader: IDoctorReader,
        clock: Optional[IClock] = None,
        slot_step_minutes: Optional[int] = None,
        search_horizon_days: Optional[int] = None,
    ):
        self.appointment_reader = appointment_reader
        self.doctor_reader = doctor_reader
        self.clock = clock or SystemClock()
        self.slot_step = timedelta(
            minutes=slot_step_minutes or config.SLOT_STEP_MINUTES
        )
        self.search_horizon_days = search_horizon_days or config.SEARCH_HORIZON_DAYS

    # ------------------------------------------------------------------
    # Scheduling policy
    # ------------------------------------------------------------------

    def evaluate_schedule(
        self,
        doctor_id: int,
        start: datetime,
        duration: timedelta,
        exclude_appointment_id: Optional[int] = None,
    ) -> SchedulingDecision:
        """Decide whether ``doctor_id`` can take ``[start, start+duration)``.

        Business Rules (checked in order, first failure wins):
        - Appointment must be strictly in the future
        - No overlap with the doctor's non-cancelled appointments
        - Doctor must have a schedule, and one available entry for that
          weekday must contain the interval without touching the break
        """
        if duration <= timedelta(0):
            raise ValueError("Duration must be positive")
        start = ensure_utc(start)
        decision = self._evaluate(doctor_id, start, duration, exclude_appointment_id)
        logger.debug(
            f"Scheduling decision: {decision.value}",
            extra={
                "context": {
                    "doctor_id": doctor_id,
                    "start": start.isoformat(),
                    "duration_minutes": duration.total_seconds() / 60,
                    "decision": decision.value,
                }
            },
        )
        return decision

    def can_schedule(
        self, doctor_id: int, start: datetime, duration: timedelta
    ) -> bool:
        return self.evaluate_schedule(doctor_id, start, duration).accepted

    def _evaluate(
        self,
        doctor_id: int,
        start: datetime,
        duration: timedelta,
        exclude_appointment_id: Optional[int],
    ) -> SchedulingDecision:
        if start <= self.clock.now():
            return SchedulingDecision.REJECTED_PAST_DATE

        if self.appointment_reader.has_conflict(
            doctor_id, start, duration, exclude_appointment_id
        ):
            return SchedulingDecision.REJECTED_CONFLICT

        schedules = self.doctor_reader.get_schedules_for_doctor(doctor_id)
        if not schedules:
            return SchedulingDecision.REJECTED_NO_SCHEDULE

        offset = time_of_day(start)
        if any(
            schedule.matches(start) and schedule.admits(offset, duration)
            for schedule in schedules
        ):
            return SchedulingDecision.ACCEPTED
        return SchedulingDecision.REJECTED_OUTSIDE_HOURS

    # ------------------------------------------------------------------
    # Next available slot
    # ------------------------------------------------------------------

    def find_next_slot(
        self,
        doctor_id: int,
        duration: timedelta,
        after: datetime,
        deadline: Optional[datetime] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Optional[datetime]:
        """Return the first schedulable start at or after ``after``, or None.

        Linear first-fit scan over ``search_horizon_days`` calendar days in
        ``slot_step`` increments, one conflict query per candidate. Raises
        SlotSearchCancelledError once ``deadline`` passes (per the injected
        clock) or ``should_cancel`` returns True.
        """
        if duration <= timedelta(0):
            raise ValueError("Duration must be positive")
        after = ensure_utc(after)
        started = perf_time.perf_counter()
        candidates_checked = 0
        found: Optional[datetime] = None

        schedules = self.doctor_reader.get_schedules_for_doctor(doctor_id)
        if schedules:
            now = self.clock.now()
            first_day = after.date()
            for day_offset in range(self.search_horizon_days):
                day = first_day + timedelta(days=day_offset)
                schedule = next(
                    (
                        s
                        for s in schedules
                        if s.is_available and s.day_of_week.value == day.weekday()
                    ),
                    None,
                )
                if schedule is None:
                    continue

                candidate = at_time(day, schedule.start_time)
                day_end = at_time(day, schedule.end_time)
                break_window = None
                if schedule.has_break:
                    break_window = TimeInterval(
                        at_time(day, schedule.break_start),
                        at_time(day, schedule.break_end),
                    )

                while candidate + duration <= day_end:
                    self._check_cancelled(deadline, should_cancel)
                    proposed = TimeInterval.from_duration(candidate, duration)
                    if break_window is not None and proposed.overlaps(break_window):
                        candidate = break_window.end
                        continue

                    if candidate >= after and candidate > now:
                        candidates_checked += 1
                        if not self.appointment_reader.has_conflict(
                            doctor_id, candidate, duration
                        ):
                            found = candidate
                            break
                    candidate += self.slot_step

                if found is not None:
                    break

        log_performance(
            "find_next_slot",
            (perf_time.perf_counter() - started) * 1000,
            doctor_id=doctor_id,
            candidates_checked=candidates_checked,
            found=found.isoformat() if found else None,
        )
        return found

    def _check_cancelled(
        self,
        deadline: Optional[datetime],
        should_cancel: Optional[Callable[[], bool]],
    ) -> None:
        if deadline is not None and self.clock.now() >= ensure_utc(deadline):
            raise SlotSearchCancelledError("Next-slot search exceeded its deadline")
        if should_cancel is not None and should_cancel():
            raise SlotSearchCancelledError("Next-slot search was cancelled")

    # ------------------------------------------------------------------
    # Emergency availability
    # ------------------------------------------------------------------

    def is_doctor_available_for_emergency(
        self, doctor_id: int, requested_time: datetime
    ) -> bool:
        """True if the doctor has nothing booked in the emergency window."""
        window = timedelta(hours=config.EMERGENCY_WINDOW_HOURS)
        return not self.appointment_reader.has_conflict(
            doctor_id, ensure_utc(requested_time), window
        )

    # ------------------------------------------------------------------
    # Fees
    # ------------------------------------------------------------------

    def quote_fee(
        self,
        doctor: Doctor,
        duration: timedelta,
        appointment_type: Optional[str] = "Regular",
    ) -> FeeQuote:
        return calculate_fee(
            doctor.consultation_fee, doctor.specialization, duration, appointment_type
        )

    def calculate_fee(
        self,
        doctor: Doctor,
        duration: timedelta,
        appointment_type: Optional[str] = "Regular",
    ) -> Decimal:
        return self.quote_fee(doctor, duration, appointment_type).amount

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def evaluate_cancellation(
        self, appointment: Appointment, now: Optional[datetime] = None
    ) -> CancellationDecision:
        return evaluate_cancellation(appointment, now or self.clock.now())

    def can_cancel(self, appointment: Appointment, now: Optional[datetime] = None) -> bool:
        return can_cancel(appointment, now or self.clock.now())
