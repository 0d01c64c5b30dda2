"""
Status Catalog Router

Endpoints:
- GET /admin/statuses - Catalog for status selection controls
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Operator, get_current_operator
from app.core.database import get_db
from app.core.errors import STORE_UNAVAILABLE_ERRORS, StoreUnavailableError, raise_http_error
from app.modules.statuses import service
from app.modules.statuses.schemas import StatusListResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=StatusListResponse,
    summary="List Statuses",
    description="Statuses ordered by `sort_order`. Pass `active_only=false` to include retired ones.",
)
async def list_statuses(
    active_only: bool = Query(True, description="Only statuses offered for selection"),
    db: AsyncSession = Depends(get_db),
    operator: Operator = Depends(get_current_operator),
) -> StatusListResponse:
    try:
        statuses = await service.list_statuses(db, active_only=active_only)
    except STORE_UNAVAILABLE_ERRORS as e:
        logger.error(f"Database unavailable listing statuses: {e}")
        raise_http_error(StoreUnavailableError())

    return StatusListResponse(statuses=[StatusResponse.model_validate(s) for s in statuses])
