from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from .base import CamelModel, validate_email_format


class PatientProfile(CamelModel):
    """Profile fields a patient may change after signup."""

    name: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    town: Optional[str] = None
    country: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_email_format(v) if v is not None else v


class PatientUpdate(PatientProfile):
    preexisting_conditions: Optional[str] = None
    current_medications: Optional[str] = None


class PatientSignup(CamelModel):
    name: str = Field(..., min_length=1)
    dob: Optional[str] = None
    gender: Optional[str] = None
    email: str
    phone_number: str = Field(..., min_length=1)
    address: Optional[str] = None
    town: Optional[str] = None
    country: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None
    preexisting_conditions: Optional[str] = None
    current_medications: Optional[str] = None
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _email_format(cls, v: str) -> str:
        return validate_email_format(v)


class PatientResponse(CamelModel):
    id: str
    name: str
    dob: Optional[str] = None
    gender: Optional[str] = None
    email: str
    phone_number: str
    address: Optional[str] = None
    town: Optional[str] = None
    country: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None
    preexisting_conditions: Optional[str] = None
    current_medications: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PatientInformation(CamelModel):
    name: str
    dob: Optional[str] = None
    gender: Optional[str] = None
    email: str
    phone_number: str
    address: Optional[str] = None
    town: Optional[str] = None
    country: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None
    preexisting_conditions: str = ""
    current_medications: str = ""

    @field_validator("preexisting_conditions", "current_medications", mode="before")
    @classmethod
    def _empty_when_missing(cls, v: Optional[str]) -> str:
        return v or ""


class PatientAuthResponse(CamelModel):
    user: PatientResponse
    token: str


class PatientUpdateResponse(CamelModel):
    message: str
    updated_patient: PatientResponse
