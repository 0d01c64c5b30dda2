"""Status catalog schemas."""

from pydantic import BaseModel, ConfigDict


class StatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    label: str
    color: str
    sort_order: int
    is_active: bool


class StatusListResponse(BaseModel):
    statuses: list[StatusResponse]
