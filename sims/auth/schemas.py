from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from sims.core.enums import UserRole
from sims.core.validators import validate_password_pair


class LoginRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Session(BaseModel):
    """The signed-in user's session, resolved from the bearer token on every request.

    token is the upstream backend's bearer token; it is None for the superadmin
    configured through the environment, who never signs in upstream.
    """

    token: Optional[str] = None
    role: UserRole
    profile: Dict[str, Any] = Field(default_factory=dict)

    @property
    def profile_id(self) -> str:
        """Identifier the backend expects as admin_id on writes."""
        for key in ("_id", "userId", "user_id"):
            value = self.profile.get(key)
            if value:
                return str(value)
        return ""

    @property
    def display_name(self) -> str:
        for key in ("full_name", "name", "username", "email"):
            value = self.profile.get(key)
            if value:
                return str(value)
        return self.role.value.capitalize()


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole
    profile: Dict[str, Any]
    issued_at: datetime


class SessionInfo(BaseModel):
    """Session as exposed to the client (upstream token withheld)."""

    role: UserRole
    profile: Dict[str, Any]


class PasswordResetRequest(BaseModel):
    email: EmailStr


class OtpVerifyRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=8)


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=8)
    new_password: str
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords(self) -> "PasswordResetConfirm":
        validate_password_pair(self.new_password, self.confirm_password)
        return self
