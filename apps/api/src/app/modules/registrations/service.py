"""
Registration Service

Business logic for registrations:
- Intake: issue the code, store the record with the default status
- Status workflow: validate and apply a status change with its audit entry
- Admin queries: list, detail, history, dashboard counts

Services own the transaction: every write path ends with one commit, and
any failure rolls the session back so no partial state is left behind.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import send_registration_acknowledgement, send_registration_notification
from app.core.errors import (
    STORE_UNAVAILABLE_ERRORS,
    ConflictOnWriteError,
    ServiceError,
    StoreUnavailableError,
)
from app.modules.registrations import identifiers, repository
from app.modules.registrations.models import Registration, StatusTransition
from app.modules.registrations.policy import (
    DEFAULT_POLICY,
    InvalidStatusTransitionError,
    TransitionPolicy,
)
from app.modules.registrations.schemas import RegistrationCreateRequest
from app.modules.shared import utcnow
from app.modules.statuses import service as statuses_service
from app.modules.statuses.service import StatusNotFoundError

logger = logging.getLogger(__name__)

# Intake attempts; a second attempt only follows a unique-key conflict
MAX_INTAKE_ATTEMPTS = 2

# Typed columns filled from the intake form
_FORM_COLUMNS = set(RegistrationCreateRequest.model_fields) - {"documents"}


# ============================================
# Custom Exceptions
# ============================================


class RegistrationNotFoundError(ServiceError):
    """Raised when no registration has the given code."""

    def __init__(self, code: str):
        super().__init__(
            message=f"Registration {code} not found",
            error_code="REGISTRATION_NOT_FOUND",
            status_code=404,
        )


class InvalidStatusError(ServiceError):
    """Raised when a transition targets a code that is not in the catalog."""

    def __init__(self, code: str):
        super().__init__(
            message=f"Unknown status: {code}",
            error_code="INVALID_STATUS",
            status_code=400,
        )


__all__ = [
    "ConflictOnWriteError",
    "InvalidStatusError",
    "InvalidStatusTransitionError",
    "RegistrationNotFoundError",
    "StoreUnavailableError",
    "get_history",
    "get_registration_detail",
    "get_stats",
    "list_registrations",
    "submit_registration",
    "transition",
]


def session_label(session_year: int) -> str:
    return f"{session_year}-{session_year + 1}"


# ============================================
# Intake
# ============================================


async def _send_intake_emails(registration: Registration) -> None:
    """Notify the back office (and optionally the applicant). Never raises."""
    sent = await send_registration_notification(
        code=registration.code,
        last_name=registration.last_name,
        first_name=registration.first_name,
        email=registration.email,
        phone=registration.phone,
        received_at=registration.created_at,
    )
    if not sent:
        logger.warning(f"Intake notification for {registration.code} was not sent")

    if settings.notify_applicant:
        await send_registration_acknowledgement(registration.email, registration.code)


async def submit_registration(
    db: AsyncSession,
    data: RegistrationCreateRequest,
    meta: dict[str, Any] | None = None,
    session_year: int | None = None,
) -> Registration:
    """
    Store a new registration with a freshly issued code.

    The code is drawn and committed first, then the record is written in its
    own transaction. A unique-key conflict is retried once with a new code.

    Args:
        db: Database session
        data: Validated intake form
        meta: Request metadata (addresses, user agent, timestamps)
        session_year: First year of the session (defaults to settings)

    Returns:
        The created registration

    Raises:
        ConflictOnWriteError: The retry conflicted as well
        StoreUnavailableError: The database could not be reached
    """
    session_year = session_year or settings.session_year

    payload = data.model_dump(mode="json")
    documents = payload.pop("documents", {})
    columns = data.model_dump(include=_FORM_COLUMNS)

    for attempt in range(1, MAX_INTAKE_ATTEMPTS + 1):
        try:
            default_status = await statuses_service.get_default_status(db)
            code = await identifiers.reserve(db, data.last_name, session_year)
            registration = await repository.create_registration(
                db,
                code=code,
                session=session_label(session_year),
                status_code=default_status.code,
                data=payload,
                meta=meta or {},
                documents=documents,
                **columns,
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if attempt == MAX_INTAKE_ATTEMPTS:
                logger.error(f"Intake conflict persisted after retry: {e}")
                raise ConflictOnWriteError() from e
            logger.warning(f"Intake conflict on attempt {attempt}, retrying: {e}")
            continue
        except STORE_UNAVAILABLE_ERRORS as e:
            await db.rollback()
            logger.error(f"Database unavailable during intake: {e}")
            raise StoreUnavailableError() from e
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Registration received: {registration.code} "
            f"({registration.last_name} {registration.first_name})"
        )
        await _send_intake_emails(registration)
        return registration


# ============================================
# Status Workflow
# ============================================


async def transition(
    db: AsyncSession,
    code: str,
    new_status_code: str,
    reason: str | None = None,
    actor_id: UUID | None = None,
    actor_email: str | None = None,
    origin_address: str | None = None,
    policy: TransitionPolicy | None = None,
) -> StatusTransition:
    """
    Change a registration's status and append the audit entry, atomically.

    The registration row is locked for the duration of the transaction so
    concurrent changes on the same registration record correct previous
    statuses. Inactive statuses are valid targets.

    Returns:
        The created audit entry, including the previous status code

    Raises:
        RegistrationNotFoundError: Unknown registration code
        InvalidStatusError: Target code not in the catalog
        InvalidStatusTransitionError: The policy refused the change
        ConflictOnWriteError: The store rejected the write
        StoreUnavailableError: The database could not be reached
    """
    policy = policy or DEFAULT_POLICY

    try:
        registration = await repository.get_registration_by_code(db, code, for_update=True)
        if registration is None:
            raise RegistrationNotFoundError(code)

        try:
            status = await statuses_service.resolve_status(db, new_status_code)
        except StatusNotFoundError as e:
            raise InvalidStatusError(new_status_code) from e

        previous = registration.status_code
        if not policy.is_transition_allowed(previous, status.code):
            raise InvalidStatusTransitionError(previous, status.code)

        now = utcnow()
        registration.status_code = status.code
        registration.updated_at = now

        record = await repository.add_transition(
            db,
            registration_id=registration.id,
            previous_status_code=previous,
            new_status_code=status.code,
            reason=reason,
            actor_id=actor_id,
            actor_email=actor_email,
            origin_address=origin_address,
            created_at=now,
        )
        await db.commit()

    except ServiceError:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Status change on {code} rejected by the store: {e}")
        raise ConflictOnWriteError() from e
    except STORE_UNAVAILABLE_ERRORS as e:
        await db.rollback()
        logger.error(f"Database unavailable during status change on {code}: {e}")
        raise StoreUnavailableError() from e
    except Exception:
        await db.rollback()
        raise

    logger.info(f"{code} | {record.display} by {actor_email or actor_id}")
    return record


async def get_history(db: AsyncSession, code: str) -> list[StatusTransition]:
    """
    Audit trail of a registration, newest first.

    Raises:
        RegistrationNotFoundError: Unknown registration code
    """
    registration = await repository.get_registration_by_code(db, code)
    if registration is None:
        raise RegistrationNotFoundError(code)
    return await repository.get_transitions(db, registration.id)


# ============================================
# Admin Queries
# ============================================


async def list_registrations(
    db: AsyncSession,
    *,
    status: str | None = None,
    session: str | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict[str, Any]:
    registrations, total = await repository.list_registrations(
        db,
        status=status,
        session=session,
        search=search,
        skip=skip,
        limit=limit,
    )
    return {
        "registrations": registrations,
        "total": total,
        "skip": skip,
        "limit": limit,
    }


async def get_registration_detail(
    db: AsyncSession, code: str
) -> tuple[Registration, list[StatusTransition]]:
    """
    Get a registration with its full history.

    Raises:
        RegistrationNotFoundError: Unknown registration code
    """
    registration = await repository.get_registration_by_code(db, code)
    if registration is None:
        raise RegistrationNotFoundError(code)

    history = await repository.get_transitions(db, registration.id)
    return registration, history


async def get_stats(db: AsyncSession) -> dict[str, Any]:
    """Count of registrations per status code, plus the total."""
    by_status = await repository.count_by_status(db)
    return {"total": sum(by_status.values()), "by_status": by_status}
