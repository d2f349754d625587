"""
Appointment service following SOLID principles.

Orchestrates the booking use-cases on top of AppointmentDomainService:
validation, lookups, the per-doctor lock, the scheduling decision, the fee
and the write. Rejections surface as exceptions from clinic.core.exceptions.
"""

import time as perf_time
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from clinic.core.clock import SystemClock
from clinic.core.exceptions import (
    AppointmentConflictError,
    CancellationRejectedError,
    InvalidAppointmentStatusError,
    NotFoundError,
    SchedulingRejectedError,
    SlotSearchCancelledError,
)
from clinic.core.logging_config import get_logger
from clinic.core.observability import (
    CANCELLATION_DECISIONS,
    NEXT_SLOT_SEARCHES,
    SCHEDULING_DECISIONS,
)
from clinic.domain.entities import (
    Appointment,
    AppointmentStatus,
    Doctor,
    SchedulingDecision,
)
from clinic.domain.fees import FeeQuote
from clinic.domain.interfaces import (
    IAppointmentRepository,
    IClock,
    IDoctorReader,
    INotificationSink,
    IPatientReader,
)
from clinic.domain.intervals import ensure_utc
from clinic.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentUpdateRequest,
)
from clinic.services.appointment_domain_service import AppointmentDomainService

logger = get_logger(__name__)


class AppointmentService:
    """Application service for appointment-related use-cases.

    This service demonstrates:
    - Single Responsibility: Coordinates use-cases, delegates the rules
    - Dependency Inversion: Depends on interfaces, not concrete implementations
    """

    def __init__(
        self,
        appointment_repo: IAppointmentRepository,
        doctor_repo: IDoctorReader,
        patient_repo: IPatientReader,
        domain_service: Optional[AppointmentDomainService] = None,
        clock: Optional[IClock] = None,
        notifier: Optional[INotificationSink] = None,
    ):
        self.appointment_repo = appointment_repo
        self.doctor_repo = doctor_repo
        self.patient_repo = patient_repo
        self.clock = clock or SystemClock()
        self.domain_service = domain_service or AppointmentDomainService(
            appointment_repo, doctor_repo, clock=self.clock
        )
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_appointment(
        self, request: AppointmentCreateRequest
    ) -> AppointmentResponse:
        """Create a new appointment with business rule validation.

        Business Rules:
        - Patient and doctor must exist and be active
        - The scheduling policy must accept the slot
        - No double booking, re-checked under the doctor lock
        """
        now = self.clock.now()
        request.validate(now)

        self._get_active_patient(request.patient_id)
        doctor = self._get_active_doctor(request.doctor_id)

        self.appointment_repo.lock_doctor(doctor.id)
        self._require_schedulable(doctor.id, request.start_time, request.duration)

        appointment = Appointment(
            doctor_id=doctor.id,
            patient_id=request.patient_id,
            start_time=request.start_time,
            duration=request.duration,
            status=AppointmentStatus.SCHEDULED,
            reason_for_visit=request.reason_for_visit,
            appointment_type=request.appointment_type,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
        fee = self.domain_service.calculate_fee(
            doctor, appointment.duration, appointment.fee_type
        )
        appointment.consultation_fee = fee

        created = self.appointment_repo.create(appointment)

        logger.info(
            "Appointment created",
            extra={
                "context": {
                    "appointment_id": created.id,
                    "doctor_id": created.doctor_id,
                    "patient_id": created.patient_id,
                    "start": created.start_time.isoformat(),
                    "duration_minutes": created.duration_minutes,
                    "fee": str(fee),
                }
            },
        )
        self._notify("appointment_scheduled", created)
        return AppointmentResponse.from_domain(created)

    def update_appointment(
        self, appointment_id: int, request: AppointmentUpdateRequest
    ) -> AppointmentResponse:
        """Reschedule and/or edit an appointment.

        A new time goes through the full scheduling policy, ignoring the
        appointment's own current slot. Only scheduled or confirmed
        appointments can be edited.
        """
        now = self.clock.now()
        request.validate(now)

        appointment = self._get_appointment(appointment_id)
        if appointment.status not in (
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.CONFIRMED,
        ):
            raise ValueError(
                f"Cannot modify an appointment with status {appointment.status.value}"
            )

        previous_fee_type = appointment.fee_type
        if request.reason_for_visit is not None:
            appointment.reason_for_visit = request.reason_for_visit
        if request.appointment_type is not None:
            appointment.appointment_type = request.appointment_type
        if request.notes is not None:
            appointment.notes = request.notes

        doctor = None
        if request.changes_time:
            start = request.start_time or appointment.start_time
            duration = (
                timedelta(minutes=request.duration_minutes)
                if request.duration_minutes is not None
                else appointment.duration
            )
            doctor = self._get_active_doctor(appointment.doctor_id)
            self.appointment_repo.lock_doctor(doctor.id)
            self._require_schedulable(
                doctor.id, start, duration, exclude_appointment_id=appointment.id
            )
            appointment.start_time = ensure_utc(start)
            appointment.duration = duration

        if request.changes_time or appointment.fee_type != previous_fee_type:
            doctor = doctor or self._get_doctor(appointment.doctor_id)
            appointment.consultation_fee = self.domain_service.calculate_fee(
                doctor, appointment.duration, appointment.fee_type
            )
        appointment.updated_at = now

        updated = self.appointment_repo.update(appointment)
        logger.info(
            "Appointment updated",
            extra={
                "context": {
                    "appointment_id": updated.id,
                    "rescheduled": request.changes_time,
                    "start": updated.start_time.isoformat(),
                }
            },
        )
        return AppointmentResponse.from_domain(updated)

    def cancel_appointment(
        self, appointment_id: int, reason: Optional[str] = None
    ) -> AppointmentResponse:
        """Cancel an appointment.

        Business Rules:
        - Completed, in-progress and cancelled appointments cannot be cancelled
        - The appointment must not have started
        - At least 24 hours notice, or 2 hours for an emergency reason
        """
        appointment = self._get_appointment(appointment_id)
        now = self.clock.now()

        if not appointment.can_transition_to(AppointmentStatus.CANCELLED):
            raise InvalidAppointmentStatusError(
                appointment.status, AppointmentStatus.CANCELLED
            )

        decision = self.domain_service.evaluate_cancellation(appointment, now)
        CANCELLATION_DECISIONS.labels(decision=decision.value).inc()
        if not decision.allowed:
            logger.info(
                "Cancellation rejected",
                extra={
                    "context": {
                        "appointment_id": appointment.id,
                        "decision": decision.value,
                    }
                },
            )
            raise CancellationRejectedError(decision)

        appointment.cancel(reason, at=now)
        cancelled = self.appointment_repo.update(appointment)
        logger.info(
            "Appointment cancelled",
            extra={
                "context": {"appointment_id": cancelled.id, "reason": reason}
            },
        )
        self._notify("appointment_cancelled", cancelled)
        return AppointmentResponse.from_domain(cancelled)

    def confirm_appointment(self, appointment_id: int) -> AppointmentResponse:
        """Confirm a scheduled appointment."""
        appointment = self._get_appointment(appointment_id)
        appointment.confirm(at=self.clock.now())
        return self._save_transition(appointment)

    def start_appointment(self, appointment_id: int) -> AppointmentResponse:
        """Mark an appointment as in progress."""
        appointment = self._get_appointment(appointment_id)
        appointment.start(at=self.clock.now())
        return self._save_transition(appointment)

    def complete_appointment(
        self, appointment_id: int, notes: Optional[str] = None
    ) -> AppointmentResponse:
        """Mark an in-progress appointment as completed, appending notes."""
        appointment = self._get_appointment(appointment_id)
        appointment.complete(notes, at=self.clock.now())
        return self._save_transition(appointment)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Optional[AppointmentResponse]:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        return AppointmentResponse.from_domain(appointment) if appointment else None

    def get_appointments_for_doctor(self, doctor_id: int) -> List[AppointmentResponse]:
        """Get all appointments for a doctor, ordered by start time."""
        return [
            AppointmentResponse.from_domain(apt)
            for apt in self.appointment_repo.list_by_doctor(doctor_id)
        ]

    def get_appointments_for_patient(
        self, patient_id: int
    ) -> List[AppointmentResponse]:
        """Get all appointments for a patient, most recent first."""
        return [
            AppointmentResponse.from_domain(apt)
            for apt in self.appointment_repo.get_by_patient(patient_id)
        ]

    def get_appointments_by_date_range(
        self, start_date: datetime, end_date: datetime
    ) -> List[AppointmentResponse]:
        """Get appointments within a date range."""
        if ensure_utc(end_date) < ensure_utc(start_date):
            raise ValueError("End date must not be before start date")
        return [
            AppointmentResponse.from_domain(apt)
            for apt in self.appointment_repo.get_by_date_range(start_date, end_date)
        ]

    def get_upcoming_appointments(self, days: int = 7) -> List[AppointmentResponse]:
        if days <= 0:
            raise ValueError("Days must be positive")
        return [
            AppointmentResponse.from_domain(apt)
            for apt in self.appointment_repo.get_upcoming(self.clock.now(), days)
        ]

    def check_availability(
        self, doctor_id: int, start: datetime, duration: timedelta
    ) -> SchedulingDecision:
        """Evaluate a slot without booking it."""
        self._get_active_doctor(doctor_id)
        decision = self.domain_service.evaluate_schedule(doctor_id, start, duration)
        SCHEDULING_DECISIONS.labels(decision=decision.value).inc()
        return decision

    def next_available_slot(
        self,
        doctor_id: int,
        duration: timedelta,
        after: Optional[datetime] = None,
        timeout_seconds: Optional[float] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Optional[datetime]:
        """Find the earliest bookable start for the doctor.

        ``timeout_seconds`` bounds wall-clock time spent scanning; on expiry
        SlotSearchCancelledError propagates to the caller.
        """
        self._get_active_doctor(doctor_id)
        now = self.clock.now()
        if timeout_seconds is not None:
            expires_at = perf_time.monotonic() + timeout_seconds
            deadline_hook = lambda: perf_time.monotonic() >= expires_at  # noqa: E731
            if should_cancel is None:
                should_cancel = deadline_hook
            else:
                user_hook = should_cancel
                should_cancel = lambda: deadline_hook() or user_hook()  # noqa: E731
        try:
            slot = self.domain_service.find_next_slot(
                doctor_id,
                duration,
                after or now,
                should_cancel=should_cancel,
            )
        except SlotSearchCancelledError:
            NEXT_SLOT_SEARCHES.labels(outcome="cancelled").inc()
            raise
        NEXT_SLOT_SEARCHES.labels(outcome="found" if slot else "none").inc()
        return slot

    def quote_fee(
        self,
        doctor_id: int,
        duration: timedelta,
        appointment_type: Optional[str] = None,
    ) -> FeeQuote:
        doctor = self._get_active_doctor(doctor_id)
        return self.domain_service.quote_fee(doctor, duration, appointment_type)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def _get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.doctor_repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor", doctor_id)
        return doctor

    def _get_active_doctor(self, doctor_id: int) -> Doctor:
        doctor = self._get_doctor(doctor_id)
        if not doctor.is_active:
            raise ValueError("Doctor is not accepting appointments")
        return doctor

    def _get_active_patient(self, patient_id: int):
        patient = self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient", patient_id)
        if not patient.is_active:
            raise ValueError("Patient account is inactive")
        return patient

    def _require_schedulable(
        self,
        doctor_id: int,
        start: datetime,
        duration: timedelta,
        exclude_appointment_id: Optional[int] = None,
    ) -> None:
        decision = self.domain_service.evaluate_schedule(
            doctor_id, start, duration, exclude_appointment_id
        )
        SCHEDULING_DECISIONS.labels(decision=decision.value).inc()
        if decision is SchedulingDecision.REJECTED_CONFLICT:
            raise AppointmentConflictError(doctor_id, ensure_utc(start))
        if not decision.accepted:
            raise SchedulingRejectedError(decision)

    def _save_transition(self, appointment: Appointment) -> AppointmentResponse:
        updated = self.appointment_repo.update(appointment)
        logger.info(
            f"Appointment status changed to {updated.status.value}",
            extra={"context": {"appointment_id": updated.id}},
        )
        return AppointmentResponse.from_domain(updated)

    def _notify(self, event: str, appointment: Appointment) -> None:
        if self.notifier is None:
            return
        try:
            getattr(self.notifier, event)(appointment)
        except Exception as e:
            # Notification failures never undo a committed booking
            logger.error(
                f"Notification {event} failed: {e}",
                exc_info=True,
                extra={"context": {"appointment_id": appointment.id}},
            )
