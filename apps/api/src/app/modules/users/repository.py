"""
User Repository

Database operations for operator accounts.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
        role: UserRole = UserRole.ADMIN,
        is_active: bool = True,
    ) -> User:
        """
        Create a new user record.

        The caller owns the transaction; the row is flushed, not committed.

        Args:
            db: Database session
            email: Email address (stored lower-cased)
            password_hash: bcrypt hash
            first_name: First name (optional)
            last_name: Last name (optional)
            role: Operator role
            is_active: Whether the account can log in

        Returns:
            Created User instance
        """
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address (case-insensitive)."""
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        """Check if an email address is already registered."""
        user = await UserRepository.get_by_email(db, email)
        return user is not None

    @staticmethod
    async def list_all(db: AsyncSession) -> list[User]:
        """List all operators, most recently created first."""
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def mark_logged_in(db: AsyncSession, user: User) -> None:
        """Record the login time on the user (flushed, not committed)."""
        user.last_login_at = datetime.now(UTC)
        await db.flush()

    @staticmethod
    async def delete(db: AsyncSession, user: User) -> None:
        """Delete a user (flushed, not committed). Their sessions cascade."""
        await db.delete(user)
        await db.flush()
