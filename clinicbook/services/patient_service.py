from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from ..models.patient import Patient
from ..core.exceptions import DuplicateIdentityError, NotFoundError
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.patient import PatientProfile, PatientResponse
from ..schemas.appointment import AppointmentResponse, PatientAppointmentsResponse

logger = logging.getLogger(__name__)


class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def list_patients(self) -> List[Patient]:
        return self.db.query(Patient).order_by(Patient.created_at).all()

    def get_patient(self, patient_id: str) -> Patient:
        patient = self.db.get(Patient, patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def update_profile(self, patient_id: str, profile: PatientProfile) -> Patient:
        """Apply the provided profile fields; omitted fields are kept."""
        patient = self.get_patient(patient_id)

        for field, value in profile.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(patient, field, value)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateIdentityError("Email or phone number already in use")

        self.db.refresh(patient)
        logger.info(f"Updated profile of patient {patient_id}")
        return patient

    def delete_patient(self, patient_id: str):
        patient = self.get_patient(patient_id)
        self.db.delete(patient)
        self.db.commit()
        logger.info(f"Deleted patient {patient_id}")

    def get_patient_appointments(self, patient_id: str) -> PatientAppointmentsResponse:
        patient = self.get_patient(patient_id)
        appointments = AppointmentRepository(self.db).find_by_patient(patient_id)
        return PatientAppointmentsResponse(
            patient=PatientResponse.model_validate(patient),
            appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        )
