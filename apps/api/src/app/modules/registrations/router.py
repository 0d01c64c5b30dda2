"""
Registrations Router

Public intake endpoint. No authentication: applicants have no account.

Endpoints:
- POST /registrations - Submit a registration form

Security:
- Rate limited per client address (10 per minute)
- Input validation via Pydantic schemas
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import ServiceError, raise_http_error
from app.core.rate_limit import enforce_rate_limit, get_client_ip
from app.modules.registrations import service
from app.modules.registrations.schemas import (
    RegistrationCreateRequest,
    RegistrationSubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_INTAKE = (10, 60)  # 10 submissions per minute per IP


def build_request_meta(request: Request) -> dict[str, Any]:
    """Technical details of the submitting request, kept for support and abuse checks."""
    headers = request.headers
    return {
        "ip": request.client.host if request.client else None,
        "ip_forwarded": headers.get("x-forwarded-for"),
        "user_agent": headers.get("user-agent"),
        "accept_language": headers.get("accept-language"),
        "referer": headers.get("referer"),
        "timestamp_utc": datetime.now(UTC).isoformat(),
        "server_version": settings.app_version,
    }


@router.post(
    "",
    response_model=RegistrationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Registration",
    description="""
Submit a registration form.

The response carries the registration code (NIU, e.g. `2026_LEV_001`), which
the applicant quotes in every exchange with the office. The office is
notified by email.
""",
    responses={
        409: {"description": "Concurrent write conflict, retry the submission"},
        429: {"description": "Too many submissions from this address"},
        503: {"description": "Data store unavailable"},
    },
)
async def submit_registration(
    data: RegistrationCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> RegistrationSubmitResponse:
    await enforce_rate_limit(f"intake:{get_client_ip(request)}", *RATE_LIMIT_INTAKE)

    try:
        registration = await service.submit_registration(db, data, build_request_meta(request))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        logger.exception(f"Error processing registration: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            },
        ) from e

    return RegistrationSubmitResponse(
        code=registration.code,
        session=registration.session,
        status_code=registration.status_code,
    )
