"""
Status Catalog Service

Lookup and seeding of the workflow statuses. The catalog only says which
codes exist; whether a move between two codes is allowed is decided by the
transition policy in the registrations module.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ServiceError
from app.modules.statuses import repository
from app.modules.statuses.models import Status

logger = logging.getLogger(__name__)

# (code, label, color, sort_order)
DEFAULT_STATUSES: list[tuple[str, str, str, int]] = [
    ("RECU", "Reçu", "#17a2b8", 1),
    ("A_TRAITER", "À traiter", "#007bff", 2),
    ("INCOMPLET", "Dossier incomplet", "#ffc107", 3),
    ("EN_ATTENTE", "En attente", "#6c757d", 4),
    ("VALIDE", "Validée", "#28a745", 5),
    ("REFUSE", "Refusée", "#dc3545", 6),
    ("AUTRE", "Autres", "#6c757d", 7),
    ("ABANDONNE", "Abandonné", "#6c757d", 8),
    ("TERMINE", "Terminé", "#28a745", 9),
    ("ARCHIVE", "Archivé", "#343a40", 10),
]


class StatusNotFoundError(ServiceError):
    """Raised when a status code is not in the catalog."""

    def __init__(self, code: str):
        super().__init__(
            message=f"Status {code} not found",
            error_code="STATUS_NOT_FOUND",
            status_code=404,
        )


class NoActiveStatusError(ServiceError):
    """Raised when the catalog has no active status to give new registrations."""

    def __init__(self):
        super().__init__(
            message="Registrations cannot be accepted right now. Please try again later.",
            error_code="NO_ACTIVE_STATUS",
            status_code=503,
        )


async def list_statuses(db: AsyncSession, active_only: bool = False) -> list[Status]:
    """Return the catalog in display order."""
    return await repository.list_statuses(db, active_only=active_only)


async def resolve_status(db: AsyncSession, code: str) -> Status:
    """
    Look up a status, active or not.

    Raises:
        StatusNotFoundError: If the code is not in the catalog
    """
    status = await repository.get_status(db, code)
    if status is None:
        raise StatusNotFoundError(code)
    return status


async def get_default_status(db: AsyncSession) -> Status:
    """
    Status given to new registrations: the lowest-ordered active entry.

    Raises:
        NoActiveStatusError: If the catalog has no active status
    """
    status = await repository.get_first_active_status(db)
    if status is None:
        logger.error("Status catalog has no active status; intake is blocked")
        raise NoActiveStatusError()
    return status


async def seed_default_statuses(db: AsyncSession) -> int:
    """
    Insert any missing default statuses. Existing rows are left untouched.

    Returns:
        Number of statuses inserted
    """
    existing = await repository.get_existing_codes(db)

    added = 0
    for code, label, color, sort_order in DEFAULT_STATUSES:
        if code in existing:
            continue
        db.add(Status(code=code, label=label, color=color, sort_order=sort_order, is_active=True))
        added += 1

    if added:
        await db.commit()
        logger.info(f"Seeded {added} default status(es)")

    return added
