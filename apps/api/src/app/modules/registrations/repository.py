"""
Registration Repository

Database operations for registrations and their audit trail. Functions
flush but never commit; the service owns the transaction.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.registrations.models import Registration, StatusTransition

logger = logging.getLogger(__name__)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so search text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def create_registration(db: AsyncSession, **fields: Any) -> Registration:
    registration = Registration(**fields)
    db.add(registration)
    await db.flush()
    return registration


async def get_registration_by_code(
    db: AsyncSession,
    code: str,
    *,
    for_update: bool = False,
) -> Registration | None:
    """
    Get a registration by its code.

    With ``for_update`` the row is locked until the transaction ends
    (ignored by SQLite, which serializes writers anyway).
    """
    query = select(Registration).where(Registration.code == code)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def list_registrations(
    db: AsyncSession,
    *,
    status: str | None = None,
    session: str | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Registration], int]:
    """
    List registrations, newest first.

    ``search`` matches last name, first name, code and email,
    case-insensitively.

    Returns:
        Tuple of (registrations, total matching count)
    """
    query = select(Registration)

    if status:
        query = query.where(Registration.status_code == status)
    if session:
        query = query.where(Registration.session == session)
    if search:
        pattern = f"%{escape_like(search)}%"
        query = query.where(
            or_(
                Registration.last_name.ilike(pattern, escape="\\"),
                Registration.first_name.ilike(pattern, escape="\\"),
                Registration.code.ilike(pattern, escape="\\"),
                Registration.email.ilike(pattern, escape="\\"),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    query = (
        query.order_by(Registration.created_at.desc(), Registration.code.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def count_by_status(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(
        select(Registration.status_code, func.count(Registration.id)).group_by(
            Registration.status_code
        )
    )
    return {code: count for code, count in result.all()}


async def add_transition(db: AsyncSession, **fields: Any) -> StatusTransition:
    transition = StatusTransition(**fields)
    db.add(transition)
    await db.flush()
    return transition


async def get_transitions(db: AsyncSession, registration_id: uuid.UUID) -> list[StatusTransition]:
    """Audit trail for one registration, newest first."""
    result = await db.execute(
        select(StatusTransition)
        .where(StatusTransition.registration_id == registration_id)
        .order_by(StatusTransition.created_at.desc(), StatusTransition.id.desc())
    )
    return list(result.scalars().all())
