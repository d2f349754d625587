"""Doctor repository implementation following SOLID principles."""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from clinic.db.base import Doctor as DbDoctor
from clinic.db.base import DoctorSchedule as DbDoctorSchedule
from clinic.domain.entities import Doctor as DomainDoctor
from clinic.domain.entities import DoctorSchedule as DomainDoctorSchedule
from clinic.domain.interfaces import IDoctorReader
from clinic.repositories.base import translate_db_errors


class DoctorRepository(IDoctorReader):
    """Repository for Doctor persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, doctor_id: int) -> Optional[DomainDoctor]:
        with translate_db_errors(self.db, "get_doctor"):
            db_doctor = (
                self.db.query(DbDoctor)
                .options(selectinload(DbDoctor.schedules))
                .filter_by(id=doctor_id)
                .first()
            )
        return self._to_domain(db_doctor) if db_doctor else None

    def get_schedules_for_doctor(self, doctor_id: int) -> List[DomainDoctorSchedule]:
        with translate_db_errors(self.db, "get_schedules_for_doctor"):
            rows = (
                self.db.query(DbDoctorSchedule)
                .filter(DbDoctorSchedule.doctor_id == doctor_id)
                .order_by(DbDoctorSchedule.day_of_week, DbDoctorSchedule.start_time)
                .all()
            )
        return [self._schedule_to_domain(row) for row in rows]

    def get_by_specialization(self, specialization: str) -> List[DomainDoctor]:
        """Active doctors of a specialization, matched case-insensitively."""
        with translate_db_errors(self.db, "get_by_specialization"):
            rows = (
                self.db.query(DbDoctor)
                .options(selectinload(DbDoctor.schedules))
                .filter(
                    func.lower(DbDoctor.specialization) == specialization.lower(),
                    DbDoctor.is_active.is_(True),
                )
                .order_by(DbDoctor.last_name, DbDoctor.first_name)
                .all()
            )
        return [self._to_domain(row) for row in rows]

    def create(self, doctor: DomainDoctor) -> DomainDoctor:
        """Persist a doctor together with its schedule entries."""
        db_doctor = DbDoctor(
            first_name=doctor.first_name,
            last_name=doctor.last_name,
            email=doctor.email,
            specialization=doctor.specialization,
            consultation_fee=doctor.consultation_fee,
            is_active=doctor.is_active,
            schedules=[
                DbDoctorSchedule(
                    day_of_week=schedule.day_of_week.value,
                    start_time=schedule.start_time,
                    end_time=schedule.end_time,
                    break_start=schedule.break_start,
                    break_end=schedule.break_end,
                    is_available=schedule.is_available,
                    slot_duration_minutes=schedule.slot_duration_minutes,
                )
                for schedule in doctor.schedules
            ],
        )
        with translate_db_errors(self.db, "create_doctor"):
            self.db.add(db_doctor)
            self.db.commit()
            self.db.refresh(db_doctor)
        return self._to_domain(db_doctor)

    def _schedule_to_domain(self, row: DbDoctorSchedule) -> DomainDoctorSchedule:
        return DomainDoctorSchedule(
            id=row.id,
            doctor_id=row.doctor_id,
            day_of_week=row.day_of_week,
            start_time=row.start_time,
            end_time=row.end_time,
            break_start=row.break_start,
            break_end=row.break_end,
            is_available=row.is_available,
            slot_duration_minutes=row.slot_duration_minutes,
        )

    def _to_domain(self, db_doctor: DbDoctor) -> DomainDoctor:
        """Convert DB model to domain entity."""
        return DomainDoctor(
            id=db_doctor.id,
            first_name=db_doctor.first_name,
            last_name=db_doctor.last_name,
            email=db_doctor.email,
            specialization=db_doctor.specialization,
            consultation_fee=db_doctor.consultation_fee,
            is_active=db_doctor.is_active,
            schedules=[self._schedule_to_domain(s) for s in db_doctor.schedules],
        )
