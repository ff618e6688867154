from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.exceptions import NotFoundError
from ...core.security import Capability, Principal, TokenManager
from ...api.deps import get_token_manager, rate_limit_check, require_patient_capability
from ...models.patient import Patient
from ...services.auth_service import AuthService
from ...services.patient_service import PatientService
from ...schemas.auth import LoginRequest
from ...schemas.patient import (
    PatientSignup, PatientProfile, PatientResponse, PatientAuthResponse
)

router = APIRouter(prefix="/users", tags=["Users"])

current_patient = require_patient_capability(Capability.VIEW_OWN_PROFILE)


@router.post(
    "/signup",
    response_model=PatientAuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_check)]
)
def signup(
    signup_data: PatientSignup,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager)
):
    """Register a new patient."""
    return AuthService(db, tokens).register_patient(signup_data)


@router.post("/login", response_model=PatientAuthResponse, dependencies=[Depends(rate_limit_check)])
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager)
):
    """Authenticate a patient and return a token."""
    return AuthService(db, tokens).login_patient(login_data)


@router.get("/protected", response_model=PatientResponse)
def get_current_user_info(
    principal: Principal = Depends(current_patient),
    db: Session = Depends(get_db)
):
    """Get the logged-in patient's record."""
    patient = db.get(Patient, principal.id)
    if not patient:
        raise NotFoundError("User not found")
    return patient


@router.get("", response_model=List[PatientResponse])
def list_users(db: Session = Depends(get_db)):
    """List all registered patients."""
    return PatientService(db).list_patients()


@router.put("/profile", response_model=PatientResponse)
def update_profile(
    profile: PatientProfile,
    principal: Principal = Depends(current_patient),
    db: Session = Depends(get_db)
):
    """Update profile settings for the logged-in patient."""
    return PatientService(db).update_profile(principal.id, profile)
