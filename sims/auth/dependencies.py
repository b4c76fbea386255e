from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError

from sims.auth.schemas import Session
from sims.auth.security import decode_session_token


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_session(token: str = Depends(oauth2_scheme)) -> Session:
    """Resolve the signed-in session from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        return decode_session_token(token)
    except (JWTError, ValidationError):
        raise credentials_exception
