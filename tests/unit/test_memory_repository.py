"""
Unit tests for the in-memory repositories.
"""

from datetime import timedelta

import pytest

from clinic.core.exceptions import AppointmentConflictError, NotFoundError
from clinic.repositories.memory import (
    InMemoryAppointmentRepository,
    InMemoryDoctorRepository,
)
from tests.factories.domain_factories import MONDAY, at, make_appointment, make_doctor


@pytest.mark.unit
@pytest.mark.repositories
class TestInMemoryAppointmentRepository:
    def test_create_assigns_ids_and_copies(self):
        repo = InMemoryAppointmentRepository()
        created = repo.create(make_appointment(appointment_id=None))

        created.notes = "mutated outside the store"

        assert created.id == 1
        assert repo.get_by_id(1).notes is None

    def test_active_start_must_be_unique(self):
        repo = InMemoryAppointmentRepository()
        repo.create(make_appointment(appointment_id=None))
        with pytest.raises(AppointmentConflictError):
            repo.create(make_appointment(appointment_id=None, minutes=15))

    def test_cancelled_rows_free_the_start(self):
        repo = InMemoryAppointmentRepository()
        first = repo.create(make_appointment(appointment_id=None))
        first.cancel("Changed plans")
        repo.update(first)

        assert not repo.has_conflict(1, at(MONDAY, 10), timedelta(minutes=30))
        assert repo.create(make_appointment(appointment_id=None)).id == 2

    def test_update_unknown_raises(self):
        with pytest.raises(NotFoundError):
            InMemoryAppointmentRepository().update(make_appointment(appointment_id=9))


@pytest.mark.unit
@pytest.mark.repositories
class TestInMemoryDoctorRepository:
    def test_add_links_schedules_to_doctor(self):
        repo = InMemoryDoctorRepository()
        doctor = repo.add(make_doctor(doctor_id=None))

        assert doctor.id == 1
        assert all(s.doctor_id == 1 for s in repo.get_schedules_for_doctor(1))
        assert repo.get_schedules_for_doctor(2) == []

    def test_specialization_lookup_skips_inactive(self):
        repo = InMemoryDoctorRepository()
        repo.add(make_doctor(doctor_id=1))
        repo.add(make_doctor(doctor_id=2, is_active=False))
        assert [d.id for d in repo.get_by_specialization("CARDIOLOGY")] == [1]
