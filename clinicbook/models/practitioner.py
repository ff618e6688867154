from sqlalchemy import Column, String, DateTime, JSON, UniqueConstraint, Enum as SQLEnum
import enum

from ..core.database import Base
from ..core.security import PrincipalKind
from .patient import generate_id, utcnow


class PractitionerRole(str, enum.Enum):
    DOCTOR = "doctor"
    NURSE = "nurse"

    @property
    def principal_kind(self) -> PrincipalKind:
        return PrincipalKind(self.value)


class Practitioner(Base):
    __tablename__ = "practitioners"
    __table_args__ = (
        UniqueConstraint("email", name="uq_practitioners_email"),
        UniqueConstraint("phone_number", name="uq_practitioners_phone_number"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)

    name = Column(String(200), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(30), nullable=False, index=True)

    # Professional information
    role = Column(SQLEnum(PractitionerRole), nullable=False, index=True)
    specializations = Column(JSON, nullable=False, default=list)
    license_certificate = Column(String(255), nullable=True)

    password_hash = Column(String(255), nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Practitioner(id={self.id}, name='{self.name}', role='{self.role}')>"
