"""
Appointment repository implementation following SOLID principles.

Timestamps are written as UTC. SQLite hands them back naive, so every value
read from a row goes through ``ensure_utc``.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from clinic.core.exceptions import AppointmentConflictError, NotFoundError
from clinic.core.logging_config import get_logger
from clinic.db.base import Appointment as DbAppointment
from clinic.db.base import Doctor as DbDoctor
from clinic.domain.entities import Appointment as DomainAppointment
from clinic.domain.entities import AppointmentStatus
from clinic.domain.interfaces import IAppointmentRepository
from clinic.domain.intervals import ensure_utc
from clinic.repositories.base import translate_db_errors

logger = get_logger(__name__)

_CANCELLED = AppointmentStatus.CANCELLED.value


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, appointment_id: int) -> Optional[DomainAppointment]:
        """Get appointment by ID."""
        with translate_db_errors(self.db, "get_by_id"):
            db_appointment = (
                self.db.query(DbAppointment).filter_by(id=appointment_id).first()
            )
        return self._to_domain(db_appointment) if db_appointment else None

    def list_by_doctor(self, doctor_id: int) -> List[DomainAppointment]:
        with translate_db_errors(self.db, "list_by_doctor"):
            rows = (
                self.db.query(DbAppointment)
                .filter(DbAppointment.doctor_id == doctor_id)
                .order_by(DbAppointment.start_time)
                .all()
            )
        return [self._to_domain(row) for row in rows]

    def get_by_patient(self, patient_id: int) -> List[DomainAppointment]:
        with translate_db_errors(self.db, "get_by_patient"):
            rows = (
                self.db.query(DbAppointment)
                .filter(DbAppointment.patient_id == patient_id)
                .order_by(DbAppointment.start_time.desc())
                .all()
            )
        return [self._to_domain(row) for row in rows]

    def get_by_date_range(
        self, start_date: datetime, end_date: datetime
    ) -> List[DomainAppointment]:
        """Get appointments starting in date range (inclusive)."""
        with translate_db_errors(self.db, "get_by_date_range"):
            rows = (
                self.db.query(DbAppointment)
                .filter(
                    DbAppointment.start_time >= ensure_utc(start_date),
                    DbAppointment.start_time <= ensure_utc(end_date),
                )
                .order_by(DbAppointment.start_time)
                .all()
            )
        return [self._to_domain(row) for row in rows]

    def get_upcoming(self, now: datetime, days: int = 7) -> List[DomainAppointment]:
        now = ensure_utc(now)
        with translate_db_errors(self.db, "get_upcoming"):
            rows = (
                self.db.query(DbAppointment)
                .filter(
                    DbAppointment.start_time >= now,
                    DbAppointment.start_time <= now + timedelta(days=days),
                    DbAppointment.status != _CANCELLED,
                )
                .order_by(DbAppointment.start_time)
                .all()
            )
        return [self._to_domain(row) for row in rows]

    def has_conflict(
        self,
        doctor_id: int,
        start: datetime,
        duration: timedelta,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """Half-open overlap against the doctor's non-cancelled appointments.

        ``existing.start < end AND existing.end > start``
        """
        start = ensure_utc(start)
        end = start + duration
        query = self.db.query(DbAppointment.id).filter(
            DbAppointment.doctor_id == doctor_id,
            DbAppointment.status != _CANCELLED,
            DbAppointment.start_time < end,
            DbAppointment.end_time > start,
        )
        if exclude_id is not None:
            query = query.filter(DbAppointment.id != exclude_id)
        with translate_db_errors(self.db, "has_conflict"):
            return query.first() is not None

    def create(self, appointment: DomainAppointment) -> DomainAppointment:
        """Create a new appointment.

        A uniqueness violation from the active-slot index means a concurrent
        booking won the race; it is reported as AppointmentConflictError.
        """
        db_appointment = DbAppointment(doctor_id=appointment.doctor_id)
        self._apply(db_appointment, appointment)
        if appointment.created_at is not None:
            db_appointment.created_at = appointment.created_at
        with translate_db_errors(self.db, "create"):
            try:
                self.db.add(db_appointment)
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(
                    "Appointment insert rejected by uniqueness constraint",
                    extra={
                        "context": {
                            "doctor_id": appointment.doctor_id,
                            "start": appointment.start_time.isoformat(),
                        }
                    },
                )
                raise AppointmentConflictError(
                    appointment.doctor_id, appointment.start_time
                ) from e
            self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def update(self, appointment: DomainAppointment) -> DomainAppointment:
        """Update an existing appointment."""
        if not appointment.id:
            raise ValueError("Appointment ID is required for update")

        with translate_db_errors(self.db, "update"):
            db_appointment = (
                self.db.query(DbAppointment).filter_by(id=appointment.id).first()
            )
            if not db_appointment:
                raise NotFoundError("Appointment", appointment.id)

            self._apply(db_appointment, appointment)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise AppointmentConflictError(
                    appointment.doctor_id, appointment.start_time
                ) from e
            self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def lock_doctor(self, doctor_id: int) -> None:
        """SELECT ... FOR UPDATE on the doctor row (no-op on SQLite)."""
        with translate_db_errors(self.db, "lock_doctor"):
            self.db.query(DbDoctor.id).filter(
                DbDoctor.id == doctor_id
            ).with_for_update().first()

    def _apply(
        self, db_appointment: DbAppointment, appointment: DomainAppointment
    ) -> None:
        db_appointment.patient_id = appointment.patient_id
        db_appointment.start_time = appointment.start_time
        db_appointment.end_time = appointment.end_time
        db_appointment.duration_minutes = appointment.duration_minutes
        db_appointment.status = appointment.status.value
        db_appointment.reason_for_visit = appointment.reason_for_visit
        db_appointment.appointment_type = appointment.appointment_type
        db_appointment.notes = appointment.notes
        db_appointment.cancellation_reason = appointment.cancellation_reason
        db_appointment.consultation_fee = appointment.consultation_fee
        if appointment.updated_at is not None:
            db_appointment.updated_at = appointment.updated_at

    def _to_domain(self, db_appointment: DbAppointment) -> DomainAppointment:
        """Convert database model to domain entity."""
        fee = db_appointment.consultation_fee
        return DomainAppointment(
            id=db_appointment.id,
            doctor_id=db_appointment.doctor_id,
            patient_id=db_appointment.patient_id,
            start_time=ensure_utc(db_appointment.start_time),
            duration=timedelta(minutes=db_appointment.duration_minutes),
            status=AppointmentStatus(db_appointment.status),
            reason_for_visit=db_appointment.reason_for_visit,
            appointment_type=db_appointment.appointment_type,
            notes=db_appointment.notes,
            cancellation_reason=db_appointment.cancellation_reason,
            consultation_fee=Decimal(str(fee)) if fee is not None else None,
            created_at=(
                ensure_utc(db_appointment.created_at)
                if db_appointment.created_at
                else None
            ),
            updated_at=(
                ensure_utc(db_appointment.updated_at)
                if db_appointment.updated_at
                else None
            ),
        )
