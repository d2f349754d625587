"""
Domain package - Pure business logic layer.

This package contains:
- entities.py: Domain entities with business logic
- intervals.py: Half-open time intervals and the overlap rule
- fees.py: Consultation fee calculation
- cancellation.py: Cancellation notice policy
- interfaces.py: Repository, clock and notification contracts
"""

from .entities import (
    Appointment,
    AppointmentStatus,
    ClinicRoles,
    Doctor,
    DoctorSchedule,
    Patient,
    SchedulingDecision,
    Weekday,
)
from .interfaces import (
    IAppointmentReader,
    IAppointmentRepository,
    IAppointmentWriter,
    IClock,
    IDoctorReader,
    INotificationSink,
    IPatientReader,
)

__all__ = [
    # Domain entities
    "Appointment",
    "AppointmentStatus",
    "ClinicRoles",
    "Doctor",
    "DoctorSchedule",
    "Patient",
    "SchedulingDecision",
    "Weekday",
    # Interfaces
    "IAppointmentReader",
    "IAppointmentRepository",
    "IAppointmentWriter",
    "IClock",
    "IDoctorReader",
    "INotificationSink",
    "IPatientReader",
]
