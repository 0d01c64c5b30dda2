"""
Authentication Router

Endpoints:
- POST /auth/login - Exchange email and password for a session token
- GET /auth/verify - Check a token and return the operator
- POST /auth/logout - Delete the current session
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Operator, get_bearer_token, get_current_operator
from app.core.database import get_db
from app.core.errors import (
    STORE_UNAVAILABLE_ERRORS,
    ServiceError,
    StoreUnavailableError,
    raise_http_error,
)
from app.core.rate_limit import enforce_rate_limit, get_client_ip
from app.modules.auth import service
from app.modules.auth.schemas import LoginRequest, LoginResponse, LogoutResponse, VerifyResponse
from app.modules.users.repository import UserRepository
from app.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_LOGIN = (5, 300)  # 5 attempts per 5 minutes per IP


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin Login",
    responses={
        401: {"description": "Invalid credentials or inactive account"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate an operator and open a session.

    The returned token is sent as ``Authorization: Bearer <token>`` on
    every admin request.
    """
    client_ip = get_client_ip(request)
    await enforce_rate_limit(f"login:{client_ip}", *RATE_LIMIT_LOGIN)

    try:
        result = await service.login(
            db,
            credentials.email,
            credentials.password,
            remember=credentials.remember,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
        )
    except ServiceError as e:
        raise_http_error(e)
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable during login: {e}")
        raise_http_error(StoreUnavailableError())

    return LoginResponse(
        access_token=result.token,
        expires_at=result.expires_at,
        user=UserResponse.model_validate(result.user),
    )


@router.get(
    "/verify",
    response_model=VerifyResponse,
    summary="Verify Session",
    responses={401: {"description": "Missing, invalid or expired token"}},
)
async def verify(
    operator: Operator = Depends(get_current_operator),
    db: AsyncSession = Depends(get_db),
) -> VerifyResponse:
    """Return the operator behind the current token."""
    user = await UserRepository.get_by_id(db, operator.id)
    if user is None:
        # Account deleted between the session lookup and now
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid authentication token."},
        )
    return VerifyResponse(user=UserResponse.model_validate(user))


@router.post(
    "/logout",
    response_model=LogoutResponse,
    summary="Logout",
)
async def logout(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> LogoutResponse:
    """Delete the session behind the token. Unknown tokens are accepted."""
    try:
        await service.logout(db, token)
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable during logout: {e}")
        raise_http_error(StoreUnavailableError())

    return LogoutResponse()
