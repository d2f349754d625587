"""
Data Transfer Objects (DTOs) and validation schemas.

Following SOLID principles:
- Single Responsibility: Each schema validates one specific data contract
- Open/Closed: Schemas can be extended without modification

Request validation is where delivery-level rules live, e.g. the minimum
booking lead time and the 15-minute duration grid. The domain service only
requires an appointment to be in the future.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from clinic.core import config
from clinic.domain.intervals import ensure_utc

DURATION_GRANULARITY_MINUTES = 15
MIN_DURATION_MINUTES = 15
REASON_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 1000
APPOINTMENT_TYPE_MAX_LENGTH = 30
CANCELLATION_REASON_MAX_LENGTH = 500


def parse_datetime(value: Any, field_name: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    A trailing ``Z`` is accepted; naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be an ISO-8601 timestamp")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"{field_name} must be an ISO-8601 timestamp") from None


def parse_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be an integer") from None
    if number <= 0:
        raise ValueError(f"{field_name} must be positive")
    return number


def parse_optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _validate_duration(duration_minutes: int) -> None:
    if duration_minutes < MIN_DURATION_MINUTES:
        raise ValueError(
            f"Appointment duration must be at least {MIN_DURATION_MINUTES} minutes"
        )
    if duration_minutes > config.MAX_APPOINTMENT_MINUTES:
        raise ValueError(
            f"Appointment duration cannot exceed {config.MAX_APPOINTMENT_MINUTES} minutes"
        )
    if duration_minutes % DURATION_GRANULARITY_MINUTES:
        raise ValueError(
            f"Appointment duration must be in {DURATION_GRANULARITY_MINUTES}-minute increments"
        )


def _validate_length(value: Optional[str], limit: int, label: str) -> None:
    if value is not None and len(value) > limit:
        raise ValueError(f"{label} cannot exceed {limit} characters")


@dataclass
class AppointmentCreateRequest:
    """DTO for appointment creation requests."""

    doctor_id: int
    patient_id: int
    start_time: datetime
    duration_minutes: int
    reason_for_visit: Optional[str] = None
    appointment_type: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AppointmentCreateRequest":
        return cls(
            doctor_id=parse_positive_int(data.get("doctor_id"), "doctor_id"),
            patient_id=parse_positive_int(data.get("patient_id"), "patient_id"),
            start_time=parse_datetime(data.get("start_time"), "start_time"),
            duration_minutes=parse_positive_int(
                data.get("duration_minutes"), "duration_minutes"
            ),
            reason_for_visit=parse_optional_text(
                data.get("reason_for_visit"), "reason_for_visit"
            ),
            appointment_type=parse_optional_text(
                data.get("appointment_type"), "appointment_type"
            ),
            notes=parse_optional_text(data.get("notes"), "notes"),
        )

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    def validate(self, now: datetime) -> None:
        """Validate the request data against the current instant."""
        if self.doctor_id <= 0:
            raise ValueError("Doctor ID must be a positive number")
        if self.patient_id <= 0:
            raise ValueError("Patient ID must be a positive number")
        _validate_duration(self.duration_minutes)
        lead_time = timedelta(minutes=config.MIN_LEAD_TIME_MINUTES)
        if ensure_utc(self.start_time) <= ensure_utc(now) + lead_time:
            raise ValueError(
                f"Appointment must be scheduled at least "
                f"{config.MIN_LEAD_TIME_MINUTES} minutes in advance"
            )
        _validate_length(self.reason_for_visit, REASON_MAX_LENGTH, "Reason for visit")
        _validate_length(
            self.appointment_type, APPOINTMENT_TYPE_MAX_LENGTH, "Appointment type"
        )
        _validate_length(self.notes, NOTES_MAX_LENGTH, "Notes")


@dataclass
class AppointmentUpdateRequest:
    """DTO for appointment update (reschedule) requests."""

    start_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    reason_for_visit: Optional[str] = None
    appointment_type: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AppointmentUpdateRequest":
        return cls(
            start_time=(
                parse_datetime(data["start_time"], "start_time")
                if data.get("start_time")
                else None
            ),
            duration_minutes=(
                parse_positive_int(data["duration_minutes"], "duration_minutes")
                if data.get("duration_minutes") is not None
                else None
            ),
            reason_for_visit=parse_optional_text(
                data.get("reason_for_visit"), "reason_for_visit"
            ),
            appointment_type=parse_optional_text(
                data.get("appointment_type"), "appointment_type"
            ),
            notes=parse_optional_text(data.get("notes"), "notes"),
        )

    @property
    def changes_time(self) -> bool:
        return self.start_time is not None or self.duration_minutes is not None

    def validate(self, now: datetime) -> None:
        """Validate the request data."""
        if self.duration_minutes is not None:
            _validate_duration(self.duration_minutes)
        if self.start_time is not None:
            lead_time = timedelta(minutes=config.MIN_LEAD_TIME_MINUTES)
            if ensure_utc(self.start_time) <= ensure_utc(now) + lead_time:
                raise ValueError(
                    f"Appointment must be scheduled at least "
                    f"{config.MIN_LEAD_TIME_MINUTES} minutes in advance"
                )
        _validate_length(self.reason_for_visit, REASON_MAX_LENGTH, "Reason for visit")
        _validate_length(
            self.appointment_type, APPOINTMENT_TYPE_MAX_LENGTH, "Appointment type"
        )
        _validate_length(self.notes, NOTES_MAX_LENGTH, "Notes")


@dataclass
class AppointmentCancelRequest:
    """DTO for cancellation requests."""

    reason: Optional[str] = None

    def validate(self) -> None:
        _validate_length(
            self.reason, CANCELLATION_REASON_MAX_LENGTH, "Cancellation reason"
        )


@dataclass
class AppointmentResponse:
    """DTO for appointment API responses."""

    id: int
    doctor_id: int
    patient_id: int
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: str
    reason_for_visit: Optional[str]
    appointment_type: Optional[str]
    notes: Optional[str]
    cancellation_reason: Optional[str]
    consultation_fee: Optional[Decimal]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, appointment) -> "AppointmentResponse":
        """Create response from domain entity."""
        return cls(
            id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            duration_minutes=appointment.duration_minutes,
            status=appointment.status.value,
            reason_for_visit=appointment.reason_for_visit,
            appointment_type=appointment.appointment_type,
            notes=appointment.notes,
            cancellation_reason=appointment.cancellation_reason,
            consultation_fee=appointment.consultation_fee,
            created_at=appointment.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "doctor_id": self.doctor_id,
            "patient_id": self.patient_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "reason_for_visit": self.reason_for_visit,
            "appointment_type": self.appointment_type,
            "notes": self.notes,
            "cancellation_reason": self.cancellation_reason,
            "consultation_fee": (
                str(self.consultation_fee)
                if self.consultation_fee is not None
                else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ErrorResponse:
    """DTO for error responses."""

    error: str
    message: str
    details: Optional[dict] = None

    @classmethod
    def validation_error(
        cls, message: str, details: Optional[dict] = None
    ) -> "ErrorResponse":
        """Create validation error response."""
        return cls(error="validation_error", message=message, details=details)

    @classmethod
    def not_found(cls, message: str) -> "ErrorResponse":
        """Create not found error response."""
        return cls(error="not_found", message=message)

    @classmethod
    def scheduling_conflict(
        cls, message: str, details: Optional[dict] = None
    ) -> "ErrorResponse":
        """Create scheduling rejection response."""
        return cls(error="scheduling_rejected", message=message, details=details)

    @classmethod
    def business_rule(
        cls, message: str, details: Optional[dict] = None
    ) -> "ErrorResponse":
        """Create business rule violation response."""
        return cls(error="business_rule_violation", message=message, details=details)

    @classmethod
    def unavailable(cls, message: str = "Data source unavailable") -> "ErrorResponse":
        return cls(error="service_unavailable", message=message)

    @classmethod
    def server_error(cls, message: str = "Internal server error") -> "ErrorResponse":
        """Create server error response."""
        return cls(error="server_error", message=message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.error,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body
