"""Patient repository implementation following SOLID principles."""

from typing import Optional

from clinic.db.base import Patient as DbPatient
from clinic.domain.entities import Patient as DomainPatient
from clinic.domain.interfaces import IPatientReader
from clinic.repositories.base import translate_db_errors


class PatientRepository(IPatientReader):
    """Repository for Patient persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, patient_id: int) -> Optional[DomainPatient]:
        with translate_db_errors(self.db, "get_patient"):
            db_patient = self.db.query(DbPatient).filter_by(id=patient_id).first()
        return self._to_domain(db_patient) if db_patient else None

    def create(self, patient: DomainPatient) -> DomainPatient:
        db_patient = DbPatient(
            first_name=patient.first_name,
            last_name=patient.last_name,
            email=patient.email,
            is_active=patient.is_active,
        )
        with translate_db_errors(self.db, "create_patient"):
            self.db.add(db_patient)
            self.db.commit()
            self.db.refresh(db_patient)
        return self._to_domain(db_patient)

    def _to_domain(self, db_patient: DbPatient) -> DomainPatient:
        return DomainPatient(
            id=db_patient.id,
            first_name=db_patient.first_name,
            last_name=db_patient.last_name,
            email=db_patient.email,
            is_active=db_patient.is_active,
        )
