"""
Registration Schemas

Pydantic models for the public intake form and the admin API.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# ============================================
# Intake
# ============================================


class RegistrationCreateRequest(BaseModel):
    """
    Public intake form.

    Typed fields are copied to their own columns. Any extra answers of the
    form (family, studies, scholarships, health...) are accepted as-is and
    kept, with the typed ones, in the registration's ``data`` document.
    """

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    last_name: str = Field(..., min_length=1, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=30)
    birth_date: date | None = None
    birth_place: str | None = Field(None, max_length=100)
    nationality: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    postal_code: str | None = Field(None, max_length=10)
    city: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=50)
    passport_number: str | None = Field(None, max_length=50)

    monthly_income: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    income_currency: str = Field("EUR", min_length=3, max_length=3)
    family_allowance: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    monthly_rent: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    possible_contribution: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    contribution_currency: str = Field("EUR", min_length=3, max_length=3)
    scholarship_requested: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)

    # Uploaded file names keyed by form field (e.g. {"passport_copy": "passport.pdf"})
    documents: dict[str, str] = Field(default_factory=dict)

    @field_validator("income_currency", "contribution_currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class RegistrationSubmitResponse(BaseModel):
    """Returned to the applicant after intake."""

    code: str
    session: str
    status_code: str
    message: str = "Registration received"


# ============================================
# Admin
# ============================================


class StatusTransitionResponse(BaseModel):
    """One audit trail entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    previous_status_code: str | None = None
    new_status_code: str
    reason: str | None = None
    actor_id: UUID | None = None
    actor_email: str | None = None
    origin_address: str | None = None
    created_at: datetime
    display: str


class RegistrationListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    session: str
    status_code: str
    last_name: str
    first_name: str
    email: str
    phone: str | None = None
    created_at: datetime
    updated_at: datetime


class RegistrationListResponse(BaseModel):
    registrations: list[RegistrationListItem]
    total: int
    skip: int
    limit: int


class RegistrationDetailResponse(RegistrationListItem):
    """Full registration with its audit trail, newest first."""

    birth_date: date | None = None
    birth_place: str | None = None
    nationality: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    passport_number: str | None = None

    monthly_income: Decimal | None = None
    income_currency: str
    family_allowance: Decimal | None = None
    monthly_rent: Decimal | None = None
    possible_contribution: Decimal | None = None
    contribution_currency: str
    scholarship_requested: Decimal | None = None
    scholarship_proposed: Decimal | None = None
    scholarship_validated: Decimal | None = None

    data: dict[str, Any]
    meta: dict[str, Any]
    documents: dict[str, Any]

    history: list[StatusTransitionResponse] = Field(default_factory=list)


class RegistrationHistoryResponse(BaseModel):
    code: str
    history: list[StatusTransitionResponse]


class RegistrationStats(BaseModel):
    """Dashboard counters."""

    total: int
    by_status: dict[str, int]


class StatusChangeRequest(BaseModel):
    """Request body for PATCH /admin/registrations/{code}/status."""

    status: str = Field(..., min_length=1, max_length=32, description="Target status code")
    reason: str | None = Field(None, max_length=2000, description="Why the status changed")


class StatusChangeResponse(BaseModel):
    code: str
    previous_status_code: str | None
    new_status_code: str
    change: str
    transition: StatusTransitionResponse
