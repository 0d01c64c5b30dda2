"""
Registration Models

Database models for applicant registrations, their status history and the
per-bucket identifier counters.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import BaseModel, utcnow

Money = Numeric(10, 2)


class Registration(BaseModel):
    """
    An applicant's registration.

    ``code`` is the NIU issued at intake; it is unique and never reassigned.
    ``status_code`` changes only through the transition service, which
    records every change in ``status_transitions``.
    """

    __tablename__ = "registrations"

    code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    session: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    status_code: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("statuses.code"),
        index=True,
        nullable=False,
    )

    # Applicant identity
    last_name: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(50), nullable=True)
    passport_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Finances
    monthly_income: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    income_currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    family_allowance: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    monthly_rent: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    possible_contribution: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    contribution_currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    scholarship_requested: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    scholarship_proposed: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    scholarship_validated: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    # Complete form payload, request metadata, uploaded file names by field
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    documents: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    def __repr__(self) -> str:
        return f"<Registration(code={self.code}, status={self.status_code})>"


class StatusTransition(Base):
    """
    One entry of a registration's audit trail. Rows are append-only.

    Status codes are stored as plain strings so entries outlive catalog
    edits. ``actor_email`` keeps the operator's address after the account
    is deleted (``actor_id`` is then set to NULL).
    """

    __tablename__ = "status_transitions"
    __table_args__ = (
        Index("ix_status_transitions_registration_created", "registration_id", "created_at"),
    )

    # BigInteger on PostgreSQL, INTEGER (rowid alias) on SQLite
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    registration_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("registrations.id"),
        nullable=False,
    )
    previous_status_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    new_status_code: Mapped[str] = mapped_column(String(32), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    actor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    origin_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @property
    def display(self) -> str:
        """Human-readable change, e.g. ``RECU → VALIDE``."""
        return f"{self.previous_status_code or '-'} → {self.new_status_code}"

    def __repr__(self) -> str:
        return f"<StatusTransition(id={self.id}, {self.display})>"


class RegistrationCounter(Base):
    """Last issued sequence number per ``{year}_{PREFIX}`` bucket."""

    __tablename__ = "registration_counters"

    bucket: Mapped[str] = mapped_column(String(16), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
