"""
Central pytest configuration for the clinic scheduling tests.

Environment variables are set before any ``clinic`` import so the lazy
engine and the module-level config constants pick up test values.
"""

import os

# Test database configuration (set early so import-time engines use it)
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["LOG_TO_FILE"] = "false"
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-for-the-clinic-suite-000")

import pytest  # noqa: E402

from clinic.core.clock import FixedClock  # noqa: E402
from clinic.db.session import SessionLocal, create_tables, drop_tables  # noqa: E402
from clinic.repositories.memory import (  # noqa: E402
    InMemoryAppointmentRepository,
    InMemoryDoctorRepository,
    InMemoryPatientRepository,
)
from tests.config.markers import (  # noqa: E402,F401
    pytest_collection_modifyitems,
    pytest_configure,
)
from tests.factories.domain_factories import (  # noqa: E402
    REFERENCE_NOW,
    make_doctor,
    make_patient,
)


@pytest.fixture
def clock():
    """Clock frozen at Sunday 2030-01-06 08:00 UTC."""
    return FixedClock(REFERENCE_NOW)


@pytest.fixture
def memory_repos():
    """In-memory doctor/patient/appointment stores with one doctor and patient."""
    doctors = InMemoryDoctorRepository()
    patients = InMemoryPatientRepository()
    appointments = InMemoryAppointmentRepository()
    doctors.add(make_doctor(doctor_id=1))
    patients.add(make_patient(patient_id=1))
    return appointments, doctors, patients


@pytest.fixture
def fresh_database():
    """Recreate all tables on the shared in-memory SQLite database."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def db_session(fresh_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(fresh_database, clock):
    """Flask app with authentication disabled and a fixed clock."""
    from clinic.main import create_app

    flask_app = create_app({"LOGIN_DISABLED": True, "CLINIC_CLOCK": clock})
    yield flask_app


@pytest.fixture
def secured_app(fresh_database, clock):
    """Flask app with JWT authentication enforced."""
    from clinic.main import create_app

    flask_app = create_app({"LOGIN_DISABLED": False, "CLINIC_CLOCK": clock})
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()
