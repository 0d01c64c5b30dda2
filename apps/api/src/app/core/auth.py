"""
Authentication and Authorization

FastAPI dependencies for the admin dashboard endpoints.

Operators authenticate with an opaque bearer token issued by
``POST /auth/login``. The token is looked up (by hash) in the
``admin_sessions`` table on every request; there is no development bypass.

Roles:
- ``admin``: everything, including operator management
- ``staff``: registrations and the status workflow
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import STORE_UNAVAILABLE_ERRORS, StoreUnavailableError, raise_http_error
from app.modules.auth import service as auth_service
from app.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# auto_error=False so a missing header yields our own 401 body instead of a bare 403
security = HTTPBearer(
    auto_error=False,
    description="Admin session token from POST /auth/login",
)


@dataclass
class Operator:
    """
    An authenticated back-office operator.

    Attributes:
        id: User id
        email: Email at the time of the request (snapshotted into audit rows)
        role: ``admin`` or ``staff``
        session_id: The admin session that authenticated the request
        name: Display name
    """

    id: UUID
    email: str
    role: str
    session_id: UUID
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __str__(self) -> str:
        return f"Operator(id={self.id}, email={self.email}, role={self.role})"


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Return the raw bearer token, or fail with 401 MISSING_TOKEN."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "MISSING_TOKEN",
                "message": "Authentication token is required.",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_operator(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> Operator:
    """
    FastAPI dependency resolving the bearer token to an active operator.

    Raises:
        HTTPException 401: Token invalid, session expired or account disabled
        HTTPException 503: Database unreachable
    """
    try:
        session = await auth_service.resolve_session(db, token)
    except auth_service.AuthError as e:
        logger.warning(f"Rejected admin token: {e.error_code}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": e.error_code, "message": e.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable while resolving session: {e}")
        raise_http_error(StoreUnavailableError())

    user = session.user
    return Operator(
        id=user.id,
        email=user.email,
        role=user.role.value,
        session_id=session.id,
        name=user.full_name,
    )


async def get_current_admin(
    operator: Operator = Depends(get_current_operator),
) -> Operator:
    """
    FastAPI dependency requiring the ``admin`` role.

    Raises:
        HTTPException 403: The operator is staff
    """
    if not operator.is_admin:
        logger.warning(
            f"Access denied: operator {operator.id} ({operator.email}) has role "
            f"'{operator.role}', but 'admin' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Administrator access is required for this endpoint.",
            },
        )
    return operator


__all__ = [
    "Operator",
    "get_bearer_token",
    "get_current_admin",
    "get_current_operator",
]
