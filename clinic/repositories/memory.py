"""
In-memory repositories.

Used by unit tests and by callers that want the scheduling rules without a
database. Entities are copied on the way in and out so callers never share
state with the store.
"""

import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from clinic.core.exceptions import AppointmentConflictError, NotFoundError
from clinic.domain.entities import Appointment, Doctor, DoctorSchedule, Patient
from clinic.domain.interfaces import IAppointmentRepository, IDoctorReader, IPatientReader
from clinic.domain.intervals import TimeInterval, ensure_utc, find_conflicts


class InMemoryAppointmentRepository(IAppointmentRepository):
    def __init__(self) -> None:
        self._items: Dict[int, Appointment] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        with self._lock:
            stored = self._items.get(appointment_id)
            return replace(stored) if stored else None

    def list_by_doctor(self, doctor_id: int) -> List[Appointment]:
        with self._lock:
            rows = [a for a in self._items.values() if a.doctor_id == doctor_id]
        return [replace(a) for a in sorted(rows, key=lambda a: a.start_time)]

    def get_by_patient(self, patient_id: int) -> List[Appointment]:
        with self._lock:
            rows = [a for a in self._items.values() if a.patient_id == patient_id]
        return [
            replace(a) for a in sorted(rows, key=lambda a: a.start_time, reverse=True)
        ]

    def get_by_date_range(
        self, start_date: datetime, end_date: datetime
    ) -> List[Appointment]:
        start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
        with self._lock:
            rows = [
                a
                for a in self._items.values()
                if start_date <= a.start_time <= end_date
            ]
        return [replace(a) for a in sorted(rows, key=lambda a: a.start_time)]

    def get_upcoming(self, now: datetime, days: int = 7) -> List[Appointment]:
        now = ensure_utc(now)
        horizon = now + timedelta(days=days)
        return [
            a for a in self.get_by_date_range(now, horizon) if not a.is_cancelled
        ]

    def has_conflict(
        self,
        doctor_id: int,
        start: datetime,
        duration: timedelta,
        exclude_id: Optional[int] = None,
    ) -> bool:
        interval = TimeInterval.from_duration(ensure_utc(start), duration)
        with self._lock:
            mine = [a for a in self._items.values() if a.doctor_id == doctor_id]
            return bool(find_conflicts(mine, interval, exclude_id))

    def create(self, appointment: Appointment) -> Appointment:
        with self._lock:
            self._check_unique_start(appointment)
            stored = replace(appointment, id=self._next_id)
            self._next_id += 1
            self._items[stored.id] = stored
            return replace(stored)

    def update(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id not in self._items:
                raise NotFoundError("Appointment", appointment.id)
            self._check_unique_start(appointment)
            self._items[appointment.id] = replace(appointment)
            return replace(appointment)

    def lock_doctor(self, doctor_id: int) -> None:
        # Writes are serialized by the store's own lock
        return None

    def _check_unique_start(self, appointment: Appointment) -> None:
        """Mirror of the database's active (doctor, start) uniqueness."""
        if appointment.is_cancelled:
            return
        for other in self._items.values():
            if (
                other.id != appointment.id
                and other.doctor_id == appointment.doctor_id
                and other.start_time == appointment.start_time
                and not other.is_cancelled
            ):
                raise AppointmentConflictError(
                    appointment.doctor_id, appointment.start_time
                )


class InMemoryDoctorRepository(IDoctorReader):
    def __init__(self) -> None:
        self._items: Dict[int, Doctor] = {}
        self._next_id = 1

    def add(self, doctor: Doctor) -> Doctor:
        doctor_id = doctor.id or self._next_id
        self._next_id = max(self._next_id, doctor_id) + 1
        schedules = [replace(s, doctor_id=doctor_id) for s in doctor.schedules]
        stored = replace(doctor, id=doctor_id, schedules=schedules)
        self._items[doctor_id] = stored
        return stored

    def get_by_id(self, doctor_id: int) -> Optional[Doctor]:
        return self._items.get(doctor_id)

    def get_schedules_for_doctor(self, doctor_id: int) -> List[DoctorSchedule]:
        doctor = self._items.get(doctor_id)
        return list(doctor.schedules) if doctor else []

    def get_by_specialization(self, specialization: str) -> List[Doctor]:
        wanted = specialization.lower()
        return [
            d
            for d in self._items.values()
            if d.is_active and d.specialization.lower() == wanted
        ]


class InMemoryPatientRepository(IPatientReader):
    def __init__(self) -> None:
        self._items: Dict[int, Patient] = {}
        self._next_id = 1

    def add(self, patient: Patient) -> Patient:
        patient_id = patient.id or self._next_id
        self._next_id = max(self._next_id, patient_id) + 1
        stored = replace(patient, id=patient_id)
        self._items[patient_id] = stored
        return stored

    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        return self._items.get(patient_id)
