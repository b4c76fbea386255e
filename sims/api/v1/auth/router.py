from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm

from sims.auth.dependencies import get_current_session
from sims.auth.schemas import (
    LoginRequest,
    LoginResponse,
    OtpVerifyRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    Session,
    SessionInfo,
)
from sims.auth import services
from sims.clients.backend import BackendClient, get_anonymous_backend
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=http_status.HTTP_200_OK,
)
async def login(
    payload: LoginRequest,
    backend: BackendClient = Depends(get_anonymous_backend),
) -> LoginResponse:
    try:
        return await services.login_user(backend, payload)
    except ServiceError as e:
        if e.status_code == http_status.HTTP_500_INTERNAL_SERVER_ERROR:
            raise HTTPException(status_code=e.status_code, detail="Internal server error")
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    backend: BackendClient = Depends(get_anonymous_backend),
):
    payload = LoginRequest(
        user_id=form_data.username.strip(),
        password=form_data.password,
    )
    try:
        result = await services.login_user(backend, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "access_token": result.access_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=SessionInfo)
async def read_session(session: Session = Depends(get_current_session)) -> SessionInfo:
    return SessionInfo(role=session.role, profile=session.profile)


# --- Forgot password ---
@router.post("/forgot-password/request-reset", response_model=ActionResult)
async def request_reset(
    payload: PasswordResetRequest,
    backend: BackendClient = Depends(get_anonymous_backend),
) -> ActionResult:
    try:
        await services.request_password_reset(backend, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="A reset code has been sent to your email")


@router.post("/forgot-password/resend-otp", response_model=ActionResult)
async def resend_otp(
    payload: PasswordResetRequest,
    backend: BackendClient = Depends(get_anonymous_backend),
) -> ActionResult:
    try:
        await services.resend_password_otp(backend, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="A new reset code has been sent to your email")


@router.post("/forgot-password/verify-otp", response_model=ActionResult)
async def verify_otp(
    payload: OtpVerifyRequest,
    backend: BackendClient = Depends(get_anonymous_backend),
) -> ActionResult:
    try:
        await services.verify_password_otp(backend, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Code verified")


@router.post("/forgot-password/reset-password", response_model=ActionResult)
async def reset_password(
    payload: PasswordResetConfirm,
    backend: BackendClient = Depends(get_anonymous_backend),
) -> ActionResult:
    try:
        await services.reset_password(backend, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Password has been reset successfully")
