from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...services.patient_service import PatientService
from ...schemas.patient import (
    PatientResponse, PatientInformation, PatientUpdate, PatientUpdateResponse
)
from ...schemas.appointment import PatientAppointmentsResponse

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    return PatientService(db)


@router.get("", response_model=List[PatientResponse])
def list_patients(service: PatientService = Depends(get_patient_service)):
    """Get all patients."""
    return service.list_patients()


@router.get("/{patient_id}", response_model=PatientInformation)
def get_patient(patient_id: str, service: PatientService = Depends(get_patient_service)):
    """Get a patient's information by ID."""
    return service.get_patient(patient_id)


@router.put("/{patient_id}", response_model=PatientUpdateResponse)
def update_patient(
    patient_id: str,
    update: PatientUpdate,
    service: PatientService = Depends(get_patient_service)
):
    """Update a patient's information by ID."""
    patient = service.update_profile(patient_id, update)
    return PatientUpdateResponse(
        message="Patient updated successfully",
        updated_patient=PatientResponse.model_validate(patient)
    )


@router.delete("/{patient_id}")
def delete_patient(patient_id: str, service: PatientService = Depends(get_patient_service)):
    """Delete a patient by ID."""
    service.delete_patient(patient_id)
    return {"message": "Patient deleted successfully"}


@router.get("/{patient_id}/appointments", response_model=PatientAppointmentsResponse)
def get_patient_appointments(
    patient_id: str,
    service: PatientService = Depends(get_patient_service)
):
    """Get a patient together with all of their appointments."""
    return service.get_patient_appointments(patient_id)
