"""
Abstract interfaces for repositories following Interface Segregation Principle.

These interfaces define contracts without implementation details,
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional

from .entities import Appointment, Doctor, DoctorSchedule, Patient


class IClock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""
        pass


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID."""
        pass

    @abstractmethod
    def list_by_doctor(self, doctor_id: int) -> List[Appointment]:
        """Get all appointments for a doctor, ordered by start time."""
        pass

    @abstractmethod
    def get_by_patient(self, patient_id: int) -> List[Appointment]:
        """Get all appointments for a patient, most recent first."""
        pass

    @abstractmethod
    def get_by_date_range(
        self, start_date: datetime, end_date: datetime
    ) -> List[Appointment]:
        """Get appointments starting within ``[start_date, end_date]``."""
        pass

    @abstractmethod
    def get_upcoming(self, now: datetime, days: int = 7) -> List[Appointment]:
        """Get non-cancelled appointments starting in the next ``days`` days."""
        pass

    @abstractmethod
    def has_conflict(
        self,
        doctor_id: int,
        start: datetime,
        duration: timedelta,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """True if a non-cancelled appointment of the doctor overlaps
        ``[start, start+duration)``, ignoring ``exclude_id``."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        """Persist a new appointment.

        Raises AppointmentConflictError when the store rejects the row as a
        double booking.
        """
        pass

    @abstractmethod
    def update(self, appointment: Appointment) -> Appointment:
        """Persist changes to an existing appointment."""
        pass

    @abstractmethod
    def lock_doctor(self, doctor_id: int) -> None:
        """Serialize check-then-write sequences for one doctor until commit."""
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""

    pass


class IDoctorReader(ABC):
    """Interface for doctor read operations."""

    @abstractmethod
    def get_by_id(self, doctor_id: int) -> Optional[Doctor]:
        """Get doctor by ID, schedules included."""
        pass

    @abstractmethod
    def get_schedules_for_doctor(self, doctor_id: int) -> List[DoctorSchedule]:
        """Get the weekly schedule entries of a doctor."""
        pass

    @abstractmethod
    def get_by_specialization(self, specialization: str) -> List[Doctor]:
        """Get active doctors of a specialization (case-insensitive)."""
        pass


class IPatientReader(ABC):
    """Interface for patient read operations."""

    @abstractmethod
    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        """Get patient by ID."""
        pass


class INotificationSink(ABC):
    """Fire-and-forget notifications about appointment lifecycle events."""

    @abstractmethod
    def appointment_scheduled(self, appointment: Appointment) -> None:
        pass

    @abstractmethod
    def appointment_cancelled(self, appointment: Appointment) -> None:
        pass
