from sqlalchemy import or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from ..models.patient import Patient
from ..models.practitioner import Practitioner, PractitionerRole
from ..core.exceptions import (
    DuplicateIdentityError, InvalidRoleError, InvalidCredentialError, NotFoundError
)
from ..core.security import (
    TokenManager, PrincipalKind, get_password_hash, verify_password
)
from ..schemas.auth import LoginRequest
from ..schemas.patient import PatientSignup, PatientResponse, PatientAuthResponse
from ..schemas.practitioner import (
    PractitionerSignup, PractitionerResponse, PractitionerAuthResponse
)

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session, tokens: TokenManager):
        self.db = db
        self.tokens = tokens

    def register_patient(self, data: PatientSignup) -> PatientAuthResponse:
        """Register a new patient and issue a token."""
        same_name = self.db.query(Patient).filter(
            or_(
                and_(Patient.name == data.name, Patient.email == data.email),
                and_(Patient.name == data.name, Patient.phone_number == data.phone_number),
            )
        ).first()
        if same_name:
            raise DuplicateIdentityError("Name is already in use")

        if self.db.query(Patient).filter(Patient.email == data.email).first():
            raise DuplicateIdentityError("A user with this email already exists")

        if self.db.query(Patient).filter(Patient.phone_number == data.phone_number).first():
            raise DuplicateIdentityError("A user with this phone number already exists")

        fields = data.model_dump(exclude={"password"})
        patient = Patient(**fields, password_hash=get_password_hash(data.password))
        self._save(patient)
        logger.info(f"Registered patient {patient.id}")

        token = self.tokens.create_access_token(patient.id, patient.name, PrincipalKind.PATIENT)
        return PatientAuthResponse(user=PatientResponse.model_validate(patient), token=token)

    def login_patient(self, login_data: LoginRequest) -> PatientAuthResponse:
        """Authenticate a patient and return a fresh token."""
        patient = self.db.query(Patient).filter(Patient.email == login_data.email).first()
        if not patient:
            logger.warning(f"Patient login for unknown email {login_data.email}")
            raise NotFoundError("User not found")

        if not verify_password(login_data.password, patient.password_hash):
            logger.warning(f"Invalid password for patient {patient.id}")
            raise InvalidCredentialError("Invalid password")

        token = self.tokens.create_access_token(patient.id, patient.name, PrincipalKind.PATIENT)
        return PatientAuthResponse(user=PatientResponse.model_validate(patient), token=token)

    def register_practitioner(self, data: PractitionerSignup) -> PractitionerAuthResponse:
        """Register a doctor or nurse and issue a token."""
        try:
            role = PractitionerRole(data.role)
        except ValueError:
            raise InvalidRoleError("Role must be either 'doctor' or 'nurse'")

        same_name = self.db.query(Practitioner).filter(
            or_(
                and_(Practitioner.name == data.name, Practitioner.email == data.email),
                and_(Practitioner.name == data.name, Practitioner.phone_number == data.phone_number),
            )
        ).first()
        if same_name:
            raise DuplicateIdentityError("Name is already in use")

        existing = self.db.query(Practitioner).filter(
            or_(
                Practitioner.email == data.email,
                Practitioner.phone_number == data.phone_number,
            )
        ).first()
        if existing:
            raise DuplicateIdentityError("Email or phone number already in use")

        practitioner = Practitioner(
            name=data.name,
            email=data.email,
            phone_number=data.phone_number,
            role=role,
            specializations=list(data.specializations),
            license_certificate=data.license_certificate,
            password_hash=get_password_hash(data.password),
        )
        self._save(practitioner)
        logger.info(f"Registered {role.value} {practitioner.id}")

        token = self.tokens.create_access_token(
            practitioner.id, practitioner.name, role.principal_kind
        )
        return PractitionerAuthResponse(
            practitioner=PractitionerResponse.model_validate(practitioner), token=token
        )

    def login_practitioner(self, login_data: LoginRequest) -> PractitionerAuthResponse:
        """Authenticate a practitioner and return a fresh token."""
        practitioner = self.db.query(Practitioner).filter(
            Practitioner.email == login_data.email
        ).first()
        if not practitioner:
            logger.warning(f"Practitioner login for unknown email {login_data.email}")
            raise NotFoundError("Medical Practitioner not found")

        if not verify_password(login_data.password, practitioner.password_hash):
            logger.warning(f"Invalid password for practitioner {practitioner.id}")
            raise InvalidCredentialError("Invalid password")

        token = self.tokens.create_access_token(
            practitioner.id, practitioner.name, practitioner.role.principal_kind
        )
        return PractitionerAuthResponse(
            practitioner=PractitionerResponse.model_validate(practitioner), token=token
        )

    def _save(self, record):
        """Commit a new identity record; a lost uniqueness race is a duplicate."""
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateIdentityError("Email or phone number already in use")
        self.db.refresh(record)
