import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from sims.auth.schemas import Session
from sims.core.config import settings


def create_session_token(session: Session, *, expires_minutes: Optional[int] = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.session_expire_minutes

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {
        "sub": session.profile_id or session.role.value,
        "role": session.role.value,
        "token": session.token,
        "profile": session.profile,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.session_secret_key, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> Session:
    """Raises JWTError for bad signatures or expiry, ValueError for malformed claims."""
    payload = jwt.decode(
        token,
        settings.session_secret_key,
        algorithms=[settings.session_algorithm],
    )
    return Session(
        token=payload.get("token"),
        role=payload.get("role"),
        profile=payload.get("profile") or {},
    )


def check_superadmin_credentials(user_id: str, password: str) -> bool:
    username = settings.superadmin_username
    expected = settings.superadmin_password
    if not username or not expected:
        return False
    return secrets.compare_digest(user_id, username) and secrets.compare_digest(password, expected)
