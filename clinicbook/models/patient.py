from sqlalchemy import Column, String, DateTime, Text, UniqueConstraint
from datetime import datetime, timezone
import uuid

from ..core.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = (
        UniqueConstraint("email", name="uq_patients_email"),
        UniqueConstraint("phone_number", name="uq_patients_phone_number"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)

    # Personal information
    name = Column(String(200), nullable=False, index=True)
    dob = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)

    # Contact information
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(30), nullable=False, index=True)
    address = Column(String(255), nullable=True)
    town = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)

    # Background
    education = Column(String(100), nullable=True)
    occupation = Column(String(100), nullable=True)
    religion = Column(String(100), nullable=True)
    marital_status = Column(String(50), nullable=True)

    # Medical information
    preexisting_conditions = Column(Text, nullable=True)
    current_medications = Column(Text, nullable=True)

    password_hash = Column(String(255), nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.name}')>"
