from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List

from ...core.database import get_db
from ...core.security import Capability, Principal
from ...api.deps import require_patient_capability, require_practitioner_capability
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    BookingRequest, BookingResponse, ClinicalUpdate, AppointmentResponse,
    AppointmentUpdateResponse, VisitCountResponse
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

booking_patient = require_patient_capability(Capability.BOOK_APPOINTMENT)
clinical_writer = require_practitioner_capability(Capability.WRITE_CLINICAL_FIELDS)
practitioner_viewer = require_practitioner_capability(Capability.VIEW_PRACTITIONER_APPOINTMENTS)


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    booking: BookingRequest,
    principal: Principal = Depends(booking_patient),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Book an appointment for the logged-in patient."""
    appointment = service.book(principal.id, booking)
    return BookingResponse(
        message="Appointment created successfully",
        appointment_id=appointment.id,
        visit_number=appointment.visit_number
    )


@router.put("/{appointment_id}", response_model=AppointmentUpdateResponse)
def update_appointment(
    appointment_id: str,
    update: ClinicalUpdate,
    principal: Principal = Depends(clinical_writer),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Record clinical fields on an appointment (doctors only)."""
    appointment = service.update_clinical(appointment_id, update)
    return AppointmentUpdateResponse(
        message="Appointment updated successfully",
        appointment=AppointmentResponse.model_validate(appointment)
    )


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(service: AppointmentService = Depends(get_appointment_service)):
    """Retrieve all appointments."""
    return service.list_all()


@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
def patient_appointments(
    patient_id: str,
    service: AppointmentService = Depends(get_appointment_service)
):
    """Retrieve all appointments for a patient."""
    return service.for_patient(patient_id)


@router.get(
    "/practitioner/{practitioner_id}",
    response_model=List[AppointmentResponse],
    dependencies=[Depends(practitioner_viewer)]
)
def practitioner_appointments(
    practitioner_id: str,
    service: AppointmentService = Depends(get_appointment_service)
):
    """Retrieve a practitioner's appointments, newest first."""
    return service.for_practitioner(practitioner_id)


@router.get("/history/{patient_id}", response_model=List[AppointmentResponse])
def appointment_history(
    patient_id: str,
    service: AppointmentService = Depends(get_appointment_service)
):
    """Retrieve a patient's appointments ordered by visit number."""
    return service.history(patient_id)


@router.get("/visit-count/{patient_id}", response_model=VisitCountResponse)
def visit_count(
    patient_id: str,
    service: AppointmentService = Depends(get_appointment_service)
):
    """Retrieve the number of visits a patient has booked."""
    return VisitCountResponse(visit_count=service.visit_count(patient_id))


@router.get("/{appointment_id}/vitals")
def appointment_vitals(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service)
) -> Any:
    return service.vitals(appointment_id)


@router.get("/{appointment_id}/diagnoses")
def appointment_diagnoses(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service)
) -> Any:
    return service.diagnoses(appointment_id)
