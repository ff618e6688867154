from datetime import datetime, timedelta, timezone
from typing import Optional, FrozenSet, Dict
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security; missing credentials are reported by the gate itself
security = HTTPBearer(auto_error=False)


class PrincipalKind(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    NURSE = "nurse"


class Capability(str, Enum):
    BOOK_APPOINTMENT = "book_appointment"
    VIEW_OWN_PROFILE = "view_own_profile"
    VIEW_PRACTITIONERS = "view_practitioners"
    VIEW_PRACTITIONER_APPOINTMENTS = "view_practitioner_appointments"
    WRITE_CLINICAL_FIELDS = "write_clinical_fields"


ROLE_CAPABILITIES: Dict[PrincipalKind, FrozenSet[Capability]] = {
    PrincipalKind.PATIENT: frozenset({
        Capability.BOOK_APPOINTMENT,
        Capability.VIEW_OWN_PROFILE,
    }),
    PrincipalKind.DOCTOR: frozenset({
        Capability.VIEW_PRACTITIONERS,
        Capability.VIEW_PRACTITIONER_APPOINTMENTS,
        Capability.WRITE_CLINICAL_FIELDS,
    }),
    PrincipalKind.NURSE: frozenset({
        Capability.VIEW_PRACTITIONERS,
        Capability.VIEW_PRACTITIONER_APPOINTMENTS,
    }),
}


def has_capability(kind: PrincipalKind, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(kind, frozenset())


class TokenPayload(BaseModel):
    id: str
    name: Optional[str] = None
    role: PrincipalKind
    iat: Optional[int] = None
    exp: Optional[int] = None


class Principal(BaseModel):
    """An authenticated caller, resolved by the authorization gate."""

    id: str
    name: Optional[str] = None
    kind: PrincipalKind

    @property
    def is_practitioner(self) -> bool:
        return self.kind in (PrincipalKind.DOCTOR, PrincipalKind.NURSE)

    def can(self, capability: Capability) -> bool:
        return has_capability(self.kind, capability)


# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


class TokenManager:
    """Issues and verifies signed bearer tokens with one secret."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(
        self,
        principal_id: str,
        name: Optional[str],
        kind: PrincipalKind,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create JWT access token."""
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.expire_minutes)

        to_encode = {
            "id": principal_id,
            "name": name,
            "role": kind.value,
            "iat": int(now.timestamp()),
            "exp": now + expires_delta,
        }

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[TokenPayload]:
        """Verify and decode JWT token."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return TokenPayload(**payload)
        except (JWTError, ValueError):
            return None


# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
