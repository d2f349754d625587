"""
Custom exceptions for the application.
Following SOLID principles - centralized error handling.

Domain "failures" such as a rejected scheduling request are expected,
recoverable business outcomes. They are raised only by the application
service layer; the domain service itself returns decisions.
"""

from datetime import datetime
from typing import Any, Optional


class DomainError(Exception):
    """Base class for every clinic business-rule error."""

    pass


class NotFoundError(DomainError):
    """Raised when a referenced doctor, patient or appointment does not exist."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class AppointmentConflictError(DomainError):
    """
    Exception raised when a doctor already has an overlapping appointment.

    Raised both for a conflict detected before the write and for a
    uniqueness violation reported by the database at commit time, so callers
    handle the two identically.
    """

    def __init__(
        self, doctor_id: int, start_time: datetime, message: Optional[str] = None
    ):
        super().__init__(
            message or f"Doctor {doctor_id} is not available at {start_time}"
        )
        self.doctor_id = doctor_id
        self.start_time = start_time


class SchedulingRejectedError(DomainError):
    """Raised when the scheduling policy rejects a request.

    The ``decision`` attribute holds the SchedulingDecision explaining why.
    """

    def __init__(self, decision, message: Optional[str] = None):
        super().__init__(message or f"Cannot schedule appointment: {decision.message}")
        self.decision = decision


class CancellationRejectedError(DomainError):
    """Raised when the cancellation policy refuses a cancellation."""

    def __init__(self, decision, message: Optional[str] = None):
        super().__init__(message or f"Cannot cancel appointment: {decision.message}")
        self.decision = decision


class InvalidAppointmentStatusError(DomainError):
    """Raised on an illegal appointment status transition."""

    def __init__(self, current_status, attempted_status):
        super().__init__(
            f"Cannot transition appointment from {current_status.value} "
            f"to {attempted_status.value}"
        )
        self.current_status = current_status
        self.attempted_status = attempted_status


class DataSourceUnavailableError(DomainError):
    """
    Raised by repositories when the backing store cannot be reached.
    The core propagates it unchanged and never retries.
    """

    pass


class SlotSearchCancelledError(DomainError):
    """Raised when a next-slot search hits its deadline or is cancelled."""

    pass
