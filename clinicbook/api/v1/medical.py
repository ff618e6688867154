from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.security import Capability, TokenManager
from ...api.deps import (
    get_token_manager, rate_limit_check, require_practitioner_capability
)
from ...models.practitioner import Practitioner, PractitionerRole
from ...services.auth_service import AuthService
from ...schemas.auth import LoginRequest
from ...schemas.practitioner import (
    PractitionerSignup, PractitionerResponse, PractitionerAuthResponse
)

router = APIRouter(prefix="/medical", tags=["Medical Practitioners"])

view_practitioners = require_practitioner_capability(Capability.VIEW_PRACTITIONERS)


@router.post(
    "/signup",
    response_model=PractitionerAuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_check)]
)
def signup(
    signup_data: PractitionerSignup,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager)
):
    """Register a doctor or nurse."""
    return AuthService(db, tokens).register_practitioner(signup_data)


@router.post("/login", response_model=PractitionerAuthResponse, dependencies=[Depends(rate_limit_check)])
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager)
):
    """Authenticate a practitioner and return a token."""
    return AuthService(db, tokens).login_practitioner(login_data)


def _list_by_role(db: Session, role: PractitionerRole) -> List[Practitioner]:
    return db.query(Practitioner).filter(
        Practitioner.role == role
    ).order_by(Practitioner.created_at).all()


@router.get("/doctors", response_model=List[PractitionerResponse], dependencies=[Depends(view_practitioners)])
def list_doctors(db: Session = Depends(get_db)):
    """Get all doctors."""
    return _list_by_role(db, PractitionerRole.DOCTOR)


@router.get("/nurses", response_model=List[PractitionerResponse], dependencies=[Depends(view_practitioners)])
def list_nurses(db: Session = Depends(get_db)):
    """Get all nurses."""
    return _list_by_role(db, PractitionerRole.NURSE)
