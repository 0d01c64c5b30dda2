"""
Status Models

Catalog of the statuses a registration can be in. ``code`` is the stable
key referenced by registrations and audit entries.
"""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Status(Base):
    """A workflow status with its display label and color."""

    __tablename__ = "statuses"

    code: Mapped[str] = mapped_column(String(32), primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6c757d")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Inactive statuses are hidden from selection lists but stay valid references
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Status(code={self.code}, order={self.sort_order}, active={self.is_active})>"
