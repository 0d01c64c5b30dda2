"""
Users Admin Router

Operator account management. Administrator role only.

Endpoints:
- GET /admin/users - List operators
- POST /admin/users - Create an operator
- PATCH /admin/users/{id} - Update an operator
- DELETE /admin/users/{id} - Delete an operator (not yourself)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Operator, get_current_admin
from app.core.database import get_db
from app.core.errors import (
    STORE_UNAVAILABLE_ERRORS,
    ServiceError,
    StoreUnavailableError,
    raise_http_error,
)
from app.core.rate_limit import enforce_rate_limit
from app.modules.users import service
from app.modules.users.schemas import (
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_USER_WRITES = (20, 60)  # 20 account changes per minute per operator


async def _check_write_rate_limit(admin: Operator) -> None:
    await enforce_rate_limit(f"admin:users:{admin.id}", *RATE_LIMIT_USER_WRITES)


def _store_unavailable(e: Exception) -> None:
    logger.error(f"Database unavailable in users admin: {e}")
    raise_http_error(StoreUnavailableError())


@router.get(
    "",
    response_model=UserListResponse,
    summary="List Operators",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - administrator role required"},
    },
)
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin: Operator = Depends(get_current_admin),
) -> UserListResponse:
    try:
        users = await service.list_users(db)
    except STORE_UNAVAILABLE_ERRORS as e:
        _store_unavailable(e)

    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Operator",
    responses={
        409: {"description": "Email already in use"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def create_user(
    data: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
    admin: Operator = Depends(get_current_admin),
) -> UserResponse:
    await _check_write_rate_limit(admin)

    try:
        user = await service.create_user(db, data)
    except ServiceError as e:
        raise_http_error(e)
    except STORE_UNAVAILABLE_ERRORS as e:
        _store_unavailable(e)

    logger.info(f"Admin {admin.id} created operator {user.id} ({user.email})")
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update Operator",
    responses={
        404: {"description": "Operator not found"},
        409: {"description": "Email already in use"},
    },
)
async def update_user(
    user_id: UUID,
    data: UserUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: Operator = Depends(get_current_admin),
) -> UserResponse:
    await _check_write_rate_limit(admin)

    try:
        user = await service.update_user(db, user_id, data)
    except ServiceError as e:
        raise_http_error(e)
    except STORE_UNAVAILABLE_ERRORS as e:
        _store_unavailable(e)

    logger.info(f"Admin {admin.id} updated operator {user_id}")
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Operator",
    responses={
        400: {"description": "Cannot delete your own account"},
        404: {"description": "Operator not found"},
    },
)
async def delete_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: Operator = Depends(get_current_admin),
) -> None:
    await _check_write_rate_limit(admin)

    try:
        await service.delete_user(db, user_id, admin.id)
    except ServiceError as e:
        raise_http_error(e)
    except STORE_UNAVAILABLE_ERRORS as e:
        _store_unavailable(e)
