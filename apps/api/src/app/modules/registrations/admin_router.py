"""
Registrations Admin Router

API endpoints for operators working the registration queue.
All endpoints require an authenticated operator (admin or staff).

Endpoints:
- GET /admin/registrations - List registrations with filters and pagination
- GET /admin/registrations/stats - Count per status
- GET /admin/registrations/{code} - Registration details with history
- GET /admin/registrations/{code}/history - Status history only
- PATCH /admin/registrations/{code}/status - Change the status

Security:
- Bearer session token required
- Status changes rate limited per operator
- Every status change is recorded with the operator and their address
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Operator, get_current_operator
from app.core.database import get_db
from app.core.errors import (
    STORE_UNAVAILABLE_ERRORS,
    ServiceError,
    StoreUnavailableError,
    raise_http_error,
)
from app.core.rate_limit import RateLimitExceeded, check_rate_limit, get_client_ip
from app.modules.registrations import service
from app.modules.registrations.schemas import (
    RegistrationDetailResponse,
    RegistrationHistoryResponse,
    RegistrationListItem,
    RegistrationListResponse,
    RegistrationStats,
    StatusChangeRequest,
    StatusChangeResponse,
    StatusTransitionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_STATUS_CHANGE = (30, 60)  # 30 status changes per minute


async def _check_operator_rate_limit(
    operator: Operator,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for an operator action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:{action}:{operator.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for operator {operator.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


# ============================================
# Helper Functions
# ============================================


def _internal_error(e: Exception, context: str) -> HTTPException:
    logger.exception(f"Error {context}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


_AUTH_RESPONSES = {
    401: {"description": "Unauthorized - invalid or missing token"},
}


# ============================================
# List & Stats Endpoints
# ============================================


@router.get(
    "",
    response_model=RegistrationListResponse,
    summary="List Registrations",
    description="""
Paginated list of registrations, newest first.

**Filters:**
- `status`: Status code (e.g. `RECU`)
- `session`: Session tag (e.g. `2026-2027`)
- `search`: Case-insensitive match on last name, first name, code or email

**Pagination:**
- `skip`: Records to skip. Default: 0
- `limit`: Maximum records to return (1-100). Default: 20
""",
    responses=_AUTH_RESPONSES,
)
async def list_registrations(
    status_code: str | None = Query(None, alias="status", max_length=32),
    session: str | None = Query(None, max_length=20),
    search: str | None = Query(None, min_length=1, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> RegistrationListResponse:
    try:
        result = await service.list_registrations(
            db,
            status=status_code,
            session=session,
            search=search,
            skip=skip,
            limit=limit,
        )
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable listing registrations: {e}")
        raise_http_error(StoreUnavailableError())
    except Exception as e:
        raise _internal_error(e, "listing registrations") from e

    logger.info(
        f"Operator {operator.id} listed registrations: "
        f"total={result['total']}, returned={len(result['registrations'])}"
    )

    return RegistrationListResponse(
        registrations=[RegistrationListItem.model_validate(r) for r in result["registrations"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get(
    "/stats",
    response_model=RegistrationStats,
    summary="Registration Statistics",
    description="Total number of registrations and the count per status code.",
    responses=_AUTH_RESPONSES,
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> RegistrationStats:
    try:
        stats = await service.get_stats(db)
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable computing stats: {e}")
        raise_http_error(StoreUnavailableError())
    except Exception as e:
        raise _internal_error(e, "computing registration stats") from e

    return RegistrationStats(**stats)


# ============================================
# Detail & History Endpoints
# ============================================


@router.get(
    "/{code}",
    response_model=RegistrationDetailResponse,
    summary="Get Registration",
    description="All stored fields of a registration and its status history, newest first.",
    responses={**_AUTH_RESPONSES, 404: {"description": "Registration not found"}},
)
async def get_registration(
    code: str,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> RegistrationDetailResponse:
    try:
        registration, history = await service.get_registration_detail(db, code)
    except ServiceError as e:
        raise_http_error(e)
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable reading {code}: {e}")
        raise_http_error(StoreUnavailableError())
    except Exception as e:
        raise _internal_error(e, f"reading registration {code}") from e

    logger.info(f"Operator {operator.id} viewed registration {code}")

    detail = RegistrationDetailResponse.model_validate(registration)
    detail.history = [StatusTransitionResponse.model_validate(t) for t in history]
    return detail


@router.get(
    "/{code}/history",
    response_model=RegistrationHistoryResponse,
    summary="Get Status History",
    responses={**_AUTH_RESPONSES, 404: {"description": "Registration not found"}},
)
async def get_history(
    code: str,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> RegistrationHistoryResponse:
    try:
        history = await service.get_history(db, code)
    except ServiceError as e:
        raise_http_error(e)
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable reading history of {code}: {e}")
        raise_http_error(StoreUnavailableError())
    except Exception as e:
        raise _internal_error(e, f"reading history of {code}") from e

    return RegistrationHistoryResponse(
        code=code,
        history=[StatusTransitionResponse.model_validate(t) for t in history],
    )


# ============================================
# Status Workflow
# ============================================


@router.patch(
    "/{code}/status",
    response_model=StatusChangeResponse,
    summary="Change Registration Status",
    description="""
Move a registration to another catalog status.

The change and its audit entry (previous status, operator, address, reason)
are written together; on any error neither is.

Any catalog status, including an inactive one, is a valid target.
""",
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Unknown status code"},
        404: {"description": "Registration not found"},
        409: {"description": "Change refused or write conflict"},
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Data store unavailable"},
    },
)
async def change_status(
    code: str,
    data: StatusChangeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> StatusChangeResponse:
    await _check_operator_rate_limit(operator, "status_change", *RATE_LIMIT_STATUS_CHANGE)

    try:
        record = await service.transition(
            db,
            code,
            data.status,
            reason=data.reason,
            actor_id=operator.id,
            actor_email=operator.email,
            origin_address=get_client_ip(request),
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise _internal_error(e, f"changing status of {code}") from e

    return StatusChangeResponse(
        code=code,
        previous_status_code=record.previous_status_code,
        new_status_code=record.new_status_code,
        change=record.display,
        transition=StatusTransitionResponse.model_validate(record),
    )
