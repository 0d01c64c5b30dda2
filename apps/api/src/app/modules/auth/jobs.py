"""
Auth Background Jobs

Hourly purge of expired admin sessions. Expired sessions are already
rejected at request time; the job only keeps the table small.
"""

import logging
from datetime import UTC, datetime

from apscheduler.triggers.interval import IntervalTrigger

from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.auth import repository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_EXPIRED_SESSIONS = "auth_purge_expired_sessions"


async def purge_expired_sessions() -> int:
    """
    Delete expired admin sessions. Safe to run repeatedly.

    Returns:
        Number of sessions removed
    """
    async with async_session_maker() as db:
        try:
            removed = await repository.delete_expired_sessions(db, datetime.now(UTC))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info(f"Purged {removed} expired admin session(s)")
    return removed


def register_auth_jobs() -> None:
    """Register auth maintenance jobs. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_PURGE_EXPIRED_SESSIONS,
        func=purge_expired_sessions,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_EXPIRED_SESSIONS} (interval: 1 hour)")
