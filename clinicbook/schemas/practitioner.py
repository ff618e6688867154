from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator

from .base import CamelModel, validate_email_format
from ..models.practitioner import PractitionerRole


class PractitionerSignup(CamelModel):
    name: str = Field(..., min_length=1)
    email: str
    phone_number: str = Field(..., min_length=1)
    # Checked by the service so an unknown role is reported as such
    role: str
    specializations: List[str] = Field(default_factory=list)
    license_certificate: Optional[str] = None
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _email_format(cls, v: str) -> str:
        return validate_email_format(v)


class PractitionerResponse(CamelModel):
    id: str
    name: str
    email: str
    phone_number: str
    role: PractitionerRole
    specializations: List[str] = Field(default_factory=list)
    license_certificate: Optional[str] = None
    created_at: Optional[datetime] = None


class PractitionerAuthResponse(CamelModel):
    practitioner: PractitionerResponse
    token: str
