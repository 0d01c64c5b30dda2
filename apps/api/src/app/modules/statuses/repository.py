"""Database operations for the status catalog."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.statuses.models import Status


async def list_statuses(db: AsyncSession, active_only: bool = False) -> list[Status]:
    """List statuses by ``sort_order``, ties broken by ``code``."""
    query = select(Status)
    if active_only:
        query = query.where(Status.is_active.is_(True))
    query = query.order_by(Status.sort_order.asc(), Status.code.asc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_status(db: AsyncSession, code: str) -> Status | None:
    return await db.get(Status, code)


async def get_first_active_status(db: AsyncSession) -> Status | None:
    result = await db.execute(
        select(Status)
        .where(Status.is_active.is_(True))
        .order_by(Status.sort_order.asc(), Status.code.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_existing_codes(db: AsyncSession) -> set[str]:
    result = await db.execute(select(Status.code))
    return set(result.scalars().all())
