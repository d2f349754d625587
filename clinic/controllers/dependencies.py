"""
Per-request wiring of repositories and services.

One SQLAlchemy session per request lives in ``g`` and is closed on app
context teardown, rolling back anything left uncommitted (e.g. a doctor
lock taken by a rejected booking).
"""

from flask import current_app, g

from clinic.core.clock import SystemClock
from clinic.db.session import SessionLocal
from clinic.repositories.appointment_repo import AppointmentRepository
from clinic.repositories.doctor_repo import DoctorRepository
from clinic.repositories.patient_repo import PatientRepository
from clinic.services.appointment_domain_service import AppointmentDomainService
from clinic.services.appointment_service import AppointmentService
from clinic.services.notification_service import LoggingNotificationSink


def get_request_session():
    if "db_session" not in g:
        g.db_session = SessionLocal()
    return g.db_session


def close_request_session(exc=None) -> None:
    session = g.pop("db_session", None)
    if session is not None:
        session.close()


def get_clock():
    """App-configured clock (tests inject a FixedClock via CLINIC_CLOCK)."""
    return current_app.config.get("CLINIC_CLOCK") or SystemClock()


def get_appointment_service() -> AppointmentService:
    session = get_request_session()
    clock = get_clock()
    appointment_repo = AppointmentRepository(session)
    doctor_repo = DoctorRepository(session)
    domain_service = AppointmentDomainService(appointment_repo, doctor_repo, clock=clock)
    return AppointmentService(
        appointment_repo,
        doctor_repo,
        PatientRepository(session),
        domain_service=domain_service,
        clock=clock,
        notifier=LoggingNotificationSink(),
    )
