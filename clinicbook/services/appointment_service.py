from typing import Any, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
import logging

from ..models.appointment import Appointment
from ..core.exceptions import ConflictError, NotFoundError
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import BookingRequest, ClinicalUpdate

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = AppointmentRepository(db)

    def book(self, patient_id: str, booking: BookingRequest) -> Appointment:
        """Book an appointment with the patient's next visit number."""
        try:
            appointment = self.repository.create(
                patient_id, booking.practitioner_id, **booking.intake_fields()
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Concurrent booking for patient {patient_id}")
            raise ConflictError("Another booking for this patient is in progress, please retry")

        self.db.refresh(appointment)
        logger.info(
            f"Booked appointment {appointment.id} for patient {patient_id} "
            f"(visit {appointment.visit_number})"
        )
        return appointment

    def update_clinical(self, appointment_id: str, update: ClinicalUpdate) -> Appointment:
        """Merge clinical fields into an appointment under optimistic locking."""
        appointment = self.repository.find_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")

        if update.version is not None and update.version != appointment.version:
            raise ConflictError("Appointment has been modified since it was read")

        try:
            self.repository.merge_clinical(appointment, update.clinical_fields())
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning(f"Lost update detected on appointment {appointment_id}")
            raise ConflictError("Appointment has been modified concurrently, please retry")

        self.db.refresh(appointment)
        logger.info(f"Updated clinical record of appointment {appointment_id}")
        return appointment

    def list_all(self) -> List[Appointment]:
        return self.repository.find_all()

    def for_patient(self, patient_id: str) -> List[Appointment]:
        appointments = self.repository.find_by_patient(patient_id)
        if not appointments:
            raise NotFoundError("No appointments found.")
        return appointments

    def for_practitioner(self, practitioner_id: str) -> List[Appointment]:
        appointments = self.repository.find_by_practitioner(practitioner_id)
        if not appointments:
            raise NotFoundError("No appointments found for this practitioner.")
        return appointments

    def history(self, patient_id: str) -> List[Appointment]:
        appointments = self.repository.find_history_by_patient(patient_id)
        if not appointments:
            raise NotFoundError("No appointment history found.")
        return appointments

    def visit_count(self, patient_id: str) -> int:
        return self.repository.count_by_patient(patient_id)

    def vitals(self, appointment_id: str) -> Any:
        found = self.repository.get_vitals(appointment_id)
        if found is None:
            raise NotFoundError("Appointment not found.")
        return found["vitals"]

    def diagnoses(self, appointment_id: str) -> Any:
        found = self.repository.get_diagnoses(appointment_id)
        if found is None:
            raise NotFoundError("Appointment not found.")
        return found["diagnoses"]
