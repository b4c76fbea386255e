from fastapi import Depends, HTTPException, status

from sims.auth.dependencies import get_current_session
from sims.auth.schemas import Session
from sims.core.enums import UserRole


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.
    The superadmin passes every check.

    Example:
        Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))
    """

    async def _checker(session: Session = Depends(get_current_session)) -> Session:
        if session.role == UserRole.SUPERADMIN:
            return session
        if session.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return session

    return _checker


require_admin = require_roles(UserRole.ADMIN)
