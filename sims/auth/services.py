import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import status

from sims.auth.schemas import (
    LoginRequest,
    LoginResponse,
    OtpVerifyRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    Session,
)
from sims.auth.security import check_superadmin_credentials, create_session_token
from sims.clients.backend import BackendClient
from sims.core.config import settings
from sims.core.enums import UserRole
from sims.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def _superadmin_session(user_id: str) -> Session:
    return Session(
        token=None,
        role=UserRole.SUPERADMIN,
        profile={"user_id": user_id, "email": settings.superadmin_email},
    )


async def login_user(backend: BackendClient, payload: LoginRequest) -> LoginResponse:
    # 1. Superadmin from environment credentials; never forwarded upstream
    if check_superadmin_credentials(payload.user_id, payload.password):
        session = _superadmin_session(payload.user_id)
    else:
        # 2. Everyone else signs in against the backend
        data = await backend.post(
            "/api/users/login",
            json={"user_id": payload.user_id, "password": payload.password},
            error_message="Invalid credentials",
        )
        if not isinstance(data, dict) or not data.get("token") or not data.get("role"):
            raise ServiceError("Invalid login response from backend", status.HTTP_502_BAD_GATEWAY)
        try:
            role = UserRole(str(data["role"]).lower())
        except ValueError:
            raise ServiceError("Unknown user role.", status.HTTP_403_FORBIDDEN)
        if role == UserRole.SUPERADMIN:
            raise ServiceError("Unknown user role.", status.HTTP_403_FORBIDDEN)
        session = Session(token=data["token"], role=role, profile=data.get("userprofile") or {})

    logger.info("Signed in %s as %s", payload.user_id, session.role.value)
    return LoginResponse(
        access_token=create_session_token(session),
        role=session.role,
        profile=session.profile,
        issued_at=datetime.now(timezone.utc),
    )


async def request_password_reset(backend: BackendClient, payload: PasswordResetRequest) -> Dict[str, Any]:
    return await backend.post(
        "/api/forgot-password/request-reset",
        json={"email": payload.email},
        error_message="Failed to send reset code",
    ) or {}


async def resend_password_otp(backend: BackendClient, payload: PasswordResetRequest) -> Dict[str, Any]:
    return await backend.post(
        "/api/forgot-password/resend-otp",
        json={"email": payload.email},
        error_message="Failed to resend reset code",
    ) or {}


async def verify_password_otp(backend: BackendClient, payload: OtpVerifyRequest) -> Dict[str, Any]:
    return await backend.post(
        "/api/forgot-password/verify-otp",
        json={"email": payload.email, "otp": payload.otp},
        error_message="Invalid or expired code",
    ) or {}


async def reset_password(backend: BackendClient, payload: PasswordResetConfirm) -> Dict[str, Any]:
    return await backend.post(
        "/api/forgot-password/reset-password",
        json={"email": payload.email, "otp": payload.otp, "newPassword": payload.new_password},
        error_message="Failed to reset password",
    ) or {}
