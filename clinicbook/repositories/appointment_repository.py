from typing import Any, Dict, List, Optional
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from ..models.appointment import Appointment, PatientVisitCounter, CLINICAL_FIELDS


class AppointmentRepository:
    """Persistence for appointment records.

    Writes are flushed, not committed; the calling service owns the
    transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, patient_id: str, practitioner_id: str, **intake) -> Appointment:
        appointment = Appointment(
            patient_id=patient_id,
            practitioner_id=practitioner_id,
            visit_number=self.next_visit_number(patient_id),
            prescribed_medications=[],
            **intake,
        )
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def next_visit_number(self, patient_id: str) -> int:
        """Issue the patient's next visit number.

        The counter row is incremented in place, so concurrent bookings for
        the same patient serialize on it. The first booking seeds the row
        from the existing appointment count; a concurrent first booking
        fails the primary key check with IntegrityError.
        """
        result = self.db.execute(
            update(PatientVisitCounter)
            .where(PatientVisitCounter.patient_id == patient_id)
            .values(last_visit_number=PatientVisitCounter.last_visit_number + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return self.db.scalar(
                select(PatientVisitCounter.last_visit_number)
                .where(PatientVisitCounter.patient_id == patient_id)
            )

        counter = PatientVisitCounter(
            patient_id=patient_id,
            last_visit_number=self.count_by_patient(patient_id) + 1,
        )
        self.db.add(counter)
        self.db.flush()
        return counter.last_visit_number

    def merge_clinical(self, appointment: Appointment, fields: Dict[str, Any]) -> Appointment:
        """Shallow merge: falsy or unknown values leave the record untouched."""
        for name, value in fields.items():
            if name in CLINICAL_FIELDS and value:
                setattr(appointment, name, value)
        self.db.flush()
        return appointment

    def find_by_id(self, appointment_id: str) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id)

    def find_all(self) -> List[Appointment]:
        return list(self.db.scalars(select(Appointment).order_by(Appointment.created_at)))

    def find_by_patient(self, patient_id: str) -> List[Appointment]:
        q = select(Appointment).where(Appointment.patient_id == patient_id).order_by(Appointment.created_at)
        return list(self.db.scalars(q))

    def find_by_practitioner(self, practitioner_id: str) -> List[Appointment]:
        q = (
            select(Appointment)
            .where(Appointment.practitioner_id == practitioner_id)
            .order_by(Appointment.created_at.desc())
        )
        return list(self.db.scalars(q))

    def find_history_by_patient(self, patient_id: str) -> List[Appointment]:
        q = (
            select(Appointment)
            .where(Appointment.patient_id == patient_id)
            .order_by(Appointment.visit_number.asc())
        )
        return list(self.db.scalars(q))

    def count_by_patient(self, patient_id: str) -> int:
        q = select(func.count()).select_from(Appointment).where(Appointment.patient_id == patient_id)
        return self.db.scalar(q) or 0

    def get_vitals(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        """Return ``{"vitals": value}`` or None when the appointment is unknown."""
        row = self.db.execute(
            select(Appointment.vitals).where(Appointment.id == appointment_id)
        ).first()
        return {"vitals": row.vitals} if row is not None else None

    def get_diagnoses(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        row = self.db.execute(
            select(Appointment.diagnoses).where(Appointment.id == appointment_id)
        ).first()
        return {"diagnoses": row.diagnoses} if row is not None else None
