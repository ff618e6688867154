from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, UniqueConstraint

from ..core.database import Base
from .patient import generate_id, utcnow

CLINICAL_FIELDS = (
    "vitals",
    "diagnoses",
    "prescribed_medications",
    "lab_xray_reports",
    "referral",
)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("patient_id", "visit_number", name="uq_appointments_patient_visit"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)

    # Plain references; the booked practitioner is not required to exist
    patient_id = Column(String(32), nullable=False, index=True)
    practitioner_id = Column(String(32), nullable=False, index=True)
    visit_number = Column(Integer, nullable=False)

    # Intake, filled in by the patient at booking
    new_health_concern = Column(Text, nullable=True)
    duration = Column(String(100), nullable=True)
    symptoms = Column(Text, nullable=True)
    medication = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)
    medical_conditions = Column(Text, nullable=True)
    surgeries = Column(Text, nullable=True)
    family_history = Column(Text, nullable=True)

    # Clinical, written by doctors
    vitals = Column(JSON, nullable=True)
    diagnoses = Column(JSON, nullable=True)
    prescribed_medications = Column(JSON, nullable=False, default=list)
    lab_xray_reports = Column(JSON, nullable=True)
    referral = Column(JSON, nullable=True)

    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, "
            f"practitioner_id={self.practitioner_id}, visit_number={self.visit_number})>"
        )


class PatientVisitCounter(Base):
    __tablename__ = "patient_visit_counters"

    patient_id = Column(String(32), primary_key=True)
    last_visit_number = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<PatientVisitCounter(patient_id={self.patient_id}, last={self.last_visit_number})>"
