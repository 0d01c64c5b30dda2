"""
User Service

Operator account management for the admin dashboard.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ServiceError
from app.core.security import hash_password
from app.modules.users.models import User
from app.modules.users.repository import UserRepository
from app.modules.users.schemas import UserCreateRequest, UserUpdateRequest

logger = logging.getLogger(__name__)


class UserNotFoundError(ServiceError):
    """Raised when an operator account does not exist."""

    def __init__(self, user_id: UUID):
        super().__init__(
            message=f"User {user_id} not found",
            error_code="USER_NOT_FOUND",
            status_code=404,
        )


class DuplicateEmailError(ServiceError):
    """Raised when an email address is already used by another operator."""

    def __init__(self, email: str):
        super().__init__(
            message=f"Email already in use: {email}",
            error_code="DUPLICATE_EMAIL",
            status_code=409,
        )


class CannotDeleteSelfError(ServiceError):
    """Raised when an operator tries to delete their own account."""

    def __init__(self):
        super().__init__(
            message="You cannot delete your own account.",
            error_code="CANNOT_DELETE_SELF",
            status_code=400,
        )


async def list_users(db: AsyncSession) -> list[User]:
    return await UserRepository.list_all(db)


async def create_user(db: AsyncSession, data: UserCreateRequest) -> User:
    """
    Create an operator account.

    Raises:
        DuplicateEmailError: If the email is already registered
    """
    if await UserRepository.email_exists(db, data.email):
        raise DuplicateEmailError(data.email)

    try:
        user = await UserRepository.create(
            db,
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
        )
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent create for the same email
        await db.rollback()
        raise DuplicateEmailError(data.email) from e

    return user


async def update_user(db: AsyncSession, user_id: UUID, data: UserUpdateRequest) -> User:
    """
    Update an operator account. Only fields present in the request change.

    Raises:
        UserNotFoundError: If the user doesn't exist
        DuplicateEmailError: If the new email belongs to someone else
    """
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise UserNotFoundError(user_id)

    if data.email is not None and data.email.lower() != user.email:
        if await UserRepository.email_exists(db, data.email):
            raise DuplicateEmailError(data.email)
        user.email = data.email.lower()

    if data.password:
        user.password_hash = hash_password(data.password)
    if data.first_name is not None:
        user.first_name = data.first_name
    if data.last_name is not None:
        user.last_name = data.last_name
    if data.role is not None:
        user.role = data.role
    if data.is_active is not None:
        user.is_active = data.is_active

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateEmailError(data.email or user.email) from e

    await db.refresh(user)
    logger.info(f"Updated user {user.id}")
    return user


async def delete_user(db: AsyncSession, user_id: UUID, acting_user_id: UUID) -> None:
    """
    Delete an operator account. Past transitions keep the actor email snapshot.

    Raises:
        CannotDeleteSelfError: If the operator targets their own account
        UserNotFoundError: If the user doesn't exist
    """
    if user_id == acting_user_id:
        raise CannotDeleteSelfError()

    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise UserNotFoundError(user_id)

    await UserRepository.delete(db, user)
    await db.commit()
    logger.info(f"User {user_id} deleted by {acting_user_id}")
