"""
Builders for domain entities used across the suite.

The reference week starts on Monday 2030-01-07. ``REFERENCE_NOW`` is the
Sunday before at 08:00 UTC, so everything on MONDAY lies in the future.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from clinic.domain.entities import (
    Appointment,
    AppointmentStatus,
    Doctor,
    DoctorSchedule,
    Patient,
    Weekday,
)

MONDAY = date(2030, 1, 7)
TUESDAY = MONDAY + timedelta(days=1)
REFERENCE_NOW = datetime(2030, 1, 6, 8, 0, tzinfo=timezone.utc)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def make_schedule(
    day_of_week: Weekday = Weekday.MONDAY,
    start: time = time(9, 0),
    end: time = time(17, 0),
    break_start: time = time(12, 0),
    break_end: time = time(13, 0),
    is_available: bool = True,
) -> DoctorSchedule:
    return DoctorSchedule(
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        break_start=break_start,
        break_end=break_end,
        is_available=is_available,
    )


def make_doctor(
    doctor_id: int = 1,
    specialization: str = "Cardiology",
    fee: str = "100.00",
    schedules=None,
    is_active: bool = True,
) -> Doctor:
    return Doctor(
        id=doctor_id,
        first_name="Ada",
        last_name="Heart",
        email=f"doctor{doctor_id}@clinic.local",
        specialization=specialization,
        consultation_fee=Decimal(fee),
        is_active=is_active,
        schedules=[make_schedule()] if schedules is None else schedules,
    )


def make_patient(patient_id: int = 1, is_active: bool = True) -> Patient:
    return Patient(
        id=patient_id,
        first_name="Pat",
        last_name="Smith",
        email=f"patient{patient_id}@clinic.local",
        is_active=is_active,
    )


def make_appointment(
    appointment_id=1,
    doctor_id: int = 1,
    patient_id: int = 1,
    start: datetime = None,
    minutes: int = 30,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    reason: str = None,
    appointment_type: str = None,
) -> Appointment:
    return Appointment(
        id=appointment_id,
        doctor_id=doctor_id,
        patient_id=patient_id,
        start_time=start or at(MONDAY, 10),
        duration=timedelta(minutes=minutes),
        status=status,
        reason_for_visit=reason,
        appointment_type=appointment_type,
    )
