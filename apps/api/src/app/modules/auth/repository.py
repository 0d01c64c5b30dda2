"""
Auth Repository

Database operations for admin sessions.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth.models import AdminSession

logger = logging.getLogger(__name__)


async def create_session(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    token_hash: str,
    expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AdminSession:
    """Insert a session row (flushed, not committed)."""
    session = AdminSession(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(session)
    await db.flush()
    return session


async def get_session_by_token_hash(db: AsyncSession, token_hash: str) -> AdminSession | None:
    """Get a session and its user by token hash."""
    result = await db.execute(select(AdminSession).where(AdminSession.token_hash == token_hash))
    return result.scalar_one_or_none()


async def delete_session(db: AsyncSession, session_id: uuid.UUID) -> None:
    await db.execute(delete(AdminSession).where(AdminSession.id == session_id))


async def delete_expired_sessions(db: AsyncSession, now: datetime) -> int:
    """
    Delete every session that expired before ``now``.

    Returns:
        Number of sessions removed
    """
    result = await db.execute(delete(AdminSession).where(AdminSession.expires_at < now))
    return result.rowcount or 0
