"""Management commands for the clinic scheduling backend."""

from __future__ import annotations

import logging
from datetime import time, timedelta
from decimal import Decimal
from typing import Optional, Tuple

import click

from clinic.db.session import SessionLocal, create_tables
from clinic.domain.entities import ClinicRoles, Doctor, DoctorSchedule, Patient, Weekday

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

WORKDAYS = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
)


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("create-tables")
def create_tables_command() -> None:
    """Create all database tables (idempotent)."""
    create_tables()
    logging.info("Database tables created.")


@cli.command("seed-demo")
@click.option("--fee", default="100.00", show_default=True, help="Base consultation fee.")
@click.option(
    "--specialization", default="Cardiology", show_default=True, help="Doctor specialization."
)
def seed_demo(fee: str, specialization: str) -> None:
    """Insert a demo doctor (Mon-Fri 09:00-17:00, lunch 12:00-13:00) and patient."""
    from clinic.repositories.doctor_repo import DoctorRepository
    from clinic.repositories.patient_repo import PatientRepository

    create_tables()
    session = SessionLocal()
    try:
        doctor = DoctorRepository(session).create(
            Doctor(
                first_name="Demo",
                last_name="Doctor",
                email=f"demo.{specialization.lower()}@clinic.local",
                specialization=specialization,
                consultation_fee=Decimal(fee),
                schedules=[
                    DoctorSchedule(
                        day_of_week=day,
                        start_time=time(9, 0),
                        end_time=time(17, 0),
                        break_start=time(12, 0),
                        break_end=time(13, 0),
                    )
                    for day in WORKDAYS
                ],
            )
        )
        patient = PatientRepository(session).create(
            Patient(first_name="Demo", last_name="Patient", email="demo.patient@clinic.local")
        )
        logging.info(
            "Seeded doctor id=%s (%s) and patient id=%s.",
            doctor.id,
            doctor.specialization,
            patient.id,
        )
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@cli.command("issue-token")
@click.option("--user-id", type=int, required=True, help="Subject user id.")
@click.option("--email", required=True, help="Email claim.")
@click.option(
    "--role",
    "roles",
    multiple=True,
    type=click.Choice(list(ClinicRoles.ALL)),
    help="Role claim; repeat for several roles.",
)
def issue_token(user_id: int, email: str, roles: Tuple[str, ...]) -> None:
    """Print a signed access token for local testing."""
    from clinic.core.security import create_user_token

    if not roles:
        raise click.ClickException("At least one --role is required.")
    click.echo(create_user_token(user_id, email, roles))


@cli.command("next-slot")
@click.option("--doctor-id", type=int, required=True)
@click.option("--duration", "duration_minutes", type=int, default=30, show_default=True)
@click.option("--timeout", "timeout_seconds", type=float, default=None)
def next_slot(
    doctor_id: int, duration_minutes: int, timeout_seconds: Optional[float]
) -> None:
    """Print the doctor's next bookable start time."""
    from clinic.core.exceptions import DomainError
    from clinic.repositories.appointment_repo import AppointmentRepository
    from clinic.repositories.doctor_repo import DoctorRepository
    from clinic.repositories.patient_repo import PatientRepository
    from clinic.services.appointment_service import AppointmentService

    session = SessionLocal()
    try:
        service = AppointmentService(
            AppointmentRepository(session),
            DoctorRepository(session),
            PatientRepository(session),
        )
        slot = service.next_available_slot(
            doctor_id,
            timedelta(minutes=duration_minutes),
            timeout_seconds=timeout_seconds,
        )
    except (DomainError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    finally:
        session.close()

    click.echo(slot.isoformat() if slot else "No slot available in the search horizon.")


if __name__ == "__main__":
    cli()
