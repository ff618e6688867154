from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel
from .patient import PatientResponse


class BookingRequest(CamelModel):
    practitioner_id: str = Field(..., min_length=1)
    new_health_concern: Optional[str] = None
    duration: Optional[str] = None
    symptoms: Optional[str] = None
    medication: Optional[str] = None
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    surgeries: Optional[str] = None
    family_history: Optional[str] = None

    def intake_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"practitioner_id"})


class Vitals(CamelModel):
    # readings the clinic adds later are stored as sent
    model_config = ConfigDict(extra="allow")

    bp: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    bmi: Optional[str] = None
    temperature: Optional[str] = None
    pulse: Optional[str] = None
    heart_rate: Optional[str] = None
    respiration: Optional[str] = None
    rbs: Optional[str] = None
    fbs: Optional[str] = None
    blood_group: Optional[str] = None
    sickling: Optional[bool] = None


class Diagnoses(CamelModel):
    model_config = ConfigDict(extra="allow")

    principal_diagnosis: Optional[str] = None
    additional_information: Optional[str] = None


class PrescribedMedication(CamelModel):
    item: str
    dosage: Optional[str] = None
    quantity: Optional[int] = None
    date: Optional[str] = None


class Referral(CamelModel):
    model_config = ConfigDict(extra="allow")

    doctor: Optional[str] = None
    referred_to_lab: Optional[bool] = None
    test_type: Optional[str] = None
    test_results: Optional[str] = None
    medical_note: Optional[str] = None


class ClinicalUpdate(CamelModel):
    """Clinical fields a doctor records on an appointment.

    Omitted or empty values leave the stored value untouched. ``version``
    is the appointment version the client last read; when given, the
    update is refused if the appointment has changed since.
    """

    vitals: Optional[Union[Vitals, str]] = None
    diagnoses: Optional[Union[Diagnoses, str, List[str]]] = None
    prescribed_medications: Optional[List[Union[PrescribedMedication, str]]] = None
    lab_xray_reports: Optional[Union[str, List[str]]] = None
    referral: Optional[Union[Referral, str]] = None
    version: Optional[int] = None

    @field_validator("prescribed_medications", mode="before")
    @classmethod
    def _must_be_list(cls, v: Any) -> Any:
        if not isinstance(v, list):
            raise ValueError("prescribedMedications must be a list")
        return v

    def clinical_fields(self) -> Dict[str, Any]:
        """Provided clinical values as JSON-ready documents."""
        fields = {}
        for name in ("vitals", "diagnoses", "prescribed_medications", "lab_xray_reports", "referral"):
            if name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            if isinstance(value, CamelModel):
                value = value.model_dump(by_alias=True, exclude_unset=True)
            elif isinstance(value, list):
                value = [
                    item.model_dump(by_alias=True, exclude_unset=True) if isinstance(item, CamelModel) else item
                    for item in value
                ]
            fields[name] = value
        return fields


JSONValue = Union[Dict[str, Any], List[Any], str, None]


class AppointmentResponse(CamelModel):
    id: str
    patient_id: str
    practitioner_id: str
    visit_number: int
    new_health_concern: Optional[str] = None
    duration: Optional[str] = None
    symptoms: Optional[str] = None
    medication: Optional[str] = None
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    surgeries: Optional[str] = None
    family_history: Optional[str] = None
    vitals: JSONValue = None
    diagnoses: JSONValue = None
    prescribed_medications: List[Any] = Field(default_factory=list)
    lab_xray_reports: JSONValue = None
    referral: JSONValue = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingResponse(CamelModel):
    message: str
    appointment_id: str
    visit_number: int


class AppointmentUpdateResponse(CamelModel):
    message: str
    appointment: AppointmentResponse


class VisitCountResponse(CamelModel):
    visit_count: int


class PatientAppointmentsResponse(CamelModel):
    patient: PatientResponse
    appointments: List[AppointmentResponse]
