"""
Auth Service

Admin login, session resolution and logout.

Sessions are opaque bearer tokens. Login returns the raw token once; the
database keeps only its SHA-256 hash and an expiry (24 hours, or 30 days
when the operator asks to be remembered).
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ServiceError
from app.core.security import generate_session_token, hash_token, verify_password
from app.modules.auth import repository
from app.modules.auth.models import AdminSession
from app.modules.shared import as_utc
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class AuthError(ServiceError):
    """Authentication failure (HTTP 401)."""

    def __init__(self, message: str, error_code: str):
        super().__init__(message=message, error_code=error_code, status_code=401)


class InvalidCredentialsError(AuthError):
    def __init__(self):
        super().__init__("Invalid email or password.", "INVALID_CREDENTIALS")


class AccountInactiveError(AuthError):
    def __init__(self):
        super().__init__("Your account has been deactivated.", "ACCOUNT_INACTIVE")


class InvalidTokenError(AuthError):
    def __init__(self):
        super().__init__("Invalid authentication token.", "INVALID_TOKEN")


class SessionExpiredError(AuthError):
    def __init__(self):
        super().__init__("Your session has expired. Please log in again.", "SESSION_EXPIRED")


@dataclass
class LoginResult:
    """Outcome of a successful login. ``token`` is only available here."""

    token: str
    expires_at: datetime
    user: User


def session_lifetime(remember: bool) -> timedelta:
    if remember:
        return timedelta(days=settings.admin_session_remember_days)
    return timedelta(hours=settings.admin_session_hours)


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    *,
    remember: bool = False,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> LoginResult:
    """
    Check credentials and open a new session.

    Unknown email and wrong password fail identically.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        AccountInactiveError: The account is disabled
    """
    user = await UserRepository.get_by_email(db, email)

    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for {email.lower()} from {ip_address}")
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {user.email}")
        raise AccountInactiveError()

    token = generate_session_token()
    expires_at = datetime.now(UTC) + session_lifetime(remember)

    await repository.create_session(
        db,
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    await UserRepository.mark_logged_in(db, user)
    await db.commit()

    logger.info(f"Operator logged in: {user.email} (remember={remember})")
    return LoginResult(token=token, expires_at=expires_at, user=user)


async def resolve_session(db: AsyncSession, token: str) -> AdminSession:
    """
    Return the live session for a bearer token.

    An expired session is deleted when it is presented.

    Raises:
        InvalidTokenError: No session matches the token
        SessionExpiredError: The session is past its expiry
        AccountInactiveError: The operator was disabled after logging in
    """
    session = await repository.get_session_by_token_hash(db, hash_token(token))
    if session is None:
        raise InvalidTokenError()

    if as_utc(session.expires_at) <= datetime.now(UTC):
        await repository.delete_session(db, session.id)
        await db.commit()
        raise SessionExpiredError()

    if not session.user.is_active:
        raise AccountInactiveError()

    return session


async def logout(db: AsyncSession, token: str) -> bool:
    """
    Delete the session for a token.

    Returns:
        True if a session was removed
    """
    session = await repository.get_session_by_token_hash(db, hash_token(token))
    if session is None:
        return False

    await repository.delete_session(db, session.id)
    await db.commit()
    logger.info(f"Operator {session.user_id} logged out")
    return True
