from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging
import redis

from ..core.config import Settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, AuthenticationError, AuthorizationError,
    Capability, Principal, PrincipalKind, TokenManager, TokenPayload
)
from ..models.practitioner import Practitioner

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_manager(request: Request) -> TokenManager:
    return request.app.state.tokens


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenManager = Depends(get_token_manager)
) -> TokenPayload:
    """Extract and verify the bearer token from the Authorization header."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    token_payload = tokens.verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    return token_payload


def get_current_principal(
    token_payload: TokenPayload = Depends(get_token_payload)
) -> Principal:
    """Principal as claimed by a valid token."""
    return Principal(id=token_payload.id, name=token_payload.name, kind=token_payload.role)


def get_practitioner_principal(
    claimed: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Principal:
    """Principal backed by a stored practitioner record.

    The role comes from the record, not from the token claim.
    """
    if not claimed.is_practitioner:
        raise AuthorizationError("Access denied, not a medical practitioner")

    practitioner = db.get(Practitioner, claimed.id)
    if not practitioner:
        raise AuthorizationError("Access denied, not a medical practitioner")

    return Principal(
        id=practitioner.id,
        name=practitioner.name,
        kind=practitioner.role.principal_kind
    )


# Capability-based access control dependencies
def require_patient_capability(capability: Capability):
    """Create a dependency that requires a patient session with a capability."""
    def capability_checker(
        principal: Principal = Depends(get_current_principal)
    ) -> Principal:
        if principal.kind != PrincipalKind.PATIENT or not principal.can(capability):
            raise AuthorizationError("Access denied, patient session required")
        return principal

    return capability_checker


def require_practitioner_capability(capability: Capability):
    """Create a dependency that requires a practitioner with a capability."""
    def capability_checker(
        principal: Principal = Depends(get_practitioner_principal)
    ) -> Principal:
        if not principal.can(capability):
            logger.warning(f"{principal.kind.value} {principal.id} denied {capability.value}")
            raise AuthorizationError(f"Access denied, {principal.kind.value} may not {capability.value.replace('_', ' ')}")
        return principal

    return capability_checker


# Rate limiting dependency
def rate_limit_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window rate limiting for signup and login endpoints."""
    if not settings.RATE_LIMIT_ENABLED:
        return

    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}:{request.url.path}"

    try:
        current_requests = redis_client.get(key)
        if current_requests is None:
            redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
            return
        if int(current_requests) < settings.RATE_LIMIT_REQUESTS:
            redis_client.incr(key)
            return
    except redis.RedisError as e:
        # Limiter unavailable; let the request through
        logger.warning(f"Rate limit check skipped for {key}: {e}")
        return

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests. Please try again later."
    )
