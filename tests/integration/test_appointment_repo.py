"""
Integration tests for the SQLAlchemy repositories against in-memory SQLite.
"""

from datetime import timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from clinic.core.exceptions import (
    AppointmentConflictError,
    DataSourceUnavailableError,
    NotFoundError,
)
from clinic.domain.entities import AppointmentStatus, Weekday
from clinic.repositories.appointment_repo import AppointmentRepository
from clinic.repositories.base import translate_db_errors
from clinic.repositories.doctor_repo import DoctorRepository
from clinic.repositories.patient_repo import PatientRepository
from tests.factories.domain_factories import (
    MONDAY,
    REFERENCE_NOW,
    at,
    make_appointment,
    make_doctor,
    make_patient,
)


@pytest.fixture
def seeded(db_session):
    """One doctor (Mondays 09:00-17:00) and one patient."""
    doctor = DoctorRepository(db_session).create(make_doctor())
    patient = PatientRepository(db_session).create(make_patient())
    return doctor, patient


@pytest.fixture
def repo(db_session):
    return AppointmentRepository(db_session)


def book(repo, doctor, patient, start, minutes=30, **kwargs):
    appointment = make_appointment(
        appointment_id=None,
        doctor_id=doctor.id,
        patient_id=patient.id,
        start=start,
        minutes=minutes,
        **kwargs,
    )
    appointment.consultation_fee = Decimal("150.00")
    return repo.create(appointment)


@pytest.mark.integration
@pytest.mark.repositories
class TestAppointmentRepository:
    def test_create_round_trips_utc_and_decimal(self, repo, seeded):
        doctor, patient = seeded
        created = book(repo, doctor, patient, at(MONDAY, 10))

        loaded = repo.get_by_id(created.id)

        assert loaded.start_time == at(MONDAY, 10)
        assert loaded.start_time.tzinfo == timezone.utc
        assert loaded.end_time == at(MONDAY, 10, 30)
        assert loaded.consultation_fee == Decimal("150.00")
        assert loaded.status is AppointmentStatus.SCHEDULED

    def test_appointment_type_is_persisted(self, repo, seeded):
        doctor, patient = seeded
        created = book(
            repo,
            doctor,
            patient,
            at(MONDAY, 10),
            reason="Chest pain",
            appointment_type="Emergency",
        )

        loaded = repo.get_by_id(created.id)
        assert loaded.appointment_type == "Emergency"
        assert loaded.fee_type == "Emergency"

        loaded.appointment_type = None
        repo.update(loaded)
        assert repo.get_by_id(created.id).fee_type == "Chest pain"

    def test_has_conflict_is_half_open(self, repo, seeded):
        doctor, patient = seeded
        book(repo, doctor, patient, at(MONDAY, 10))

        assert repo.has_conflict(doctor.id, at(MONDAY, 10, 15), timedelta(minutes=30))
        assert repo.has_conflict(doctor.id, at(MONDAY, 9, 45), timedelta(minutes=30))
        assert not repo.has_conflict(doctor.id, at(MONDAY, 10, 30), timedelta(minutes=30))
        assert not repo.has_conflict(doctor.id, at(MONDAY, 9, 30), timedelta(minutes=30))

    def test_has_conflict_excludes_given_id(self, repo, seeded):
        doctor, patient = seeded
        created = book(repo, doctor, patient, at(MONDAY, 10))
        assert not repo.has_conflict(
            doctor.id, at(MONDAY, 10, 15), timedelta(minutes=30), exclude_id=created.id
        )

    def test_cancelled_rows_never_conflict(self, repo, seeded):
        doctor, patient = seeded
        created = book(repo, doctor, patient, at(MONDAY, 10))
        created.cancel("Patient request", at=REFERENCE_NOW)
        repo.update(created)

        assert not repo.has_conflict(doctor.id, at(MONDAY, 10), timedelta(minutes=30))
        # The partial unique index ignores cancelled rows as well
        rebooked = book(repo, doctor, patient, at(MONDAY, 10))
        assert rebooked.id != created.id

    def test_unique_active_start_rejects_second_booking(self, repo, seeded, db_session):
        doctor, patient = seeded
        book(repo, doctor, patient, at(MONDAY, 10))

        with pytest.raises(AppointmentConflictError):
            book(repo, doctor, patient, at(MONDAY, 10), minutes=15)

        # Session is usable again after the rollback
        assert len(repo.list_by_doctor(doctor.id)) == 1

    def test_listing_orders(self, repo, seeded):
        doctor, patient = seeded
        book(repo, doctor, patient, at(MONDAY, 14))
        book(repo, doctor, patient, at(MONDAY, 9))

        assert [a.start_time for a in repo.list_by_doctor(doctor.id)] == [
            at(MONDAY, 9),
            at(MONDAY, 14),
        ]
        assert [a.start_time for a in repo.get_by_patient(patient.id)] == [
            at(MONDAY, 14),
            at(MONDAY, 9),
        ]

    def test_date_range_and_upcoming(self, repo, seeded):
        doctor, patient = seeded
        kept = book(repo, doctor, patient, at(MONDAY, 9))
        dropped = book(repo, doctor, patient, at(MONDAY, 11))
        book(repo, doctor, patient, at(MONDAY + timedelta(days=14), 9))
        dropped.cancel(None, at=REFERENCE_NOW)
        repo.update(dropped)

        in_range = repo.get_by_date_range(at(MONDAY, 0), at(MONDAY, 23))
        upcoming = repo.get_upcoming(REFERENCE_NOW, days=7)

        assert len(in_range) == 2
        assert [a.id for a in upcoming] == [kept.id]

    def test_update_missing_raises_not_found(self, repo, seeded):
        ghost = make_appointment(appointment_id=404)
        with pytest.raises(NotFoundError):
            repo.update(ghost)

    def test_lock_doctor_is_harmless_on_sqlite(self, repo, seeded):
        doctor, _ = seeded
        repo.lock_doctor(doctor.id)


@pytest.mark.integration
@pytest.mark.repositories
class TestDoctorAndPatientRepositories:
    def test_doctor_schedules_round_trip(self, db_session, seeded):
        doctor, _ = seeded
        schedules = DoctorRepository(db_session).get_schedules_for_doctor(doctor.id)

        assert len(schedules) == 1
        assert schedules[0].day_of_week is Weekday.MONDAY
        assert schedules[0].has_break

    def test_get_by_specialization_is_case_insensitive(self, db_session, seeded):
        doctors = DoctorRepository(db_session)
        doctors.create(make_doctor(doctor_id=2, specialization="Neurology"))
        doctors.create(make_doctor(doctor_id=3, is_active=False))

        assert [d.id for d in doctors.get_by_specialization("cardiology")] == [
            seeded[0].id
        ]
        assert doctors.get_by_specialization("Pediatrics") == []

    def test_unknown_ids_return_none(self, db_session, fresh_database):
        assert DoctorRepository(db_session).get_by_id(999) is None
        assert PatientRepository(db_session).get_by_id(999) is None


@pytest.mark.integration
@pytest.mark.repositories
class TestTranslateDbErrors:
    def test_operational_error_becomes_unavailable(self):
        session = Mock()
        with pytest.raises(DataSourceUnavailableError) as exc_info:
            with translate_db_errors(session, "ping"):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        session.rollback.assert_called_once()
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_other_errors_pass_through(self):
        session = Mock()
        with pytest.raises(KeyError):
            with translate_db_errors(session, "ping"):
                raise KeyError("x")
        session.rollback.assert_not_called()
