"""initial schema

Revision ID: a7c3e91f0b12
Revises:
Create Date: 2026-09-28 10:00:00.000000

This migration:
1. Creates the status catalog and inserts the default statuses
2. Creates operators (users) and their admin sessions
3. Creates registrations, the status audit trail and the code counters
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a7c3e91f0b12"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

DEFAULT_STATUSES = [
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


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables and seed the status catalog."""
    statuses = op.create_table(
        "statuses",
        sa.Column("code", sa.String(length=32), primary_key=True),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.bulk_insert(
        statuses,
        [
            {"code": code, "label": label, "color": color, "sort_order": order, "is_active": True}
            for code, label, color, order in DEFAULT_STATUSES
        ],
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("role", sa.Enum("admin", "staff", name="user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "admin_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_admin_sessions_user_id", "admin_sessions", ["user_id"])
    op.create_index("ix_admin_sessions_token_hash", "admin_sessions", ["token_hash"], unique=True)
    op.create_index("ix_admin_sessions_expires_at", "admin_sessions", ["expires_at"])

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("session", sa.String(length=20), nullable=False),
        sa.Column(
            "status_code",
            sa.String(length=32),
            sa.ForeignKey("statuses.code"),
            nullable=False,
        ),
        # Identity
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("birth_place", sa.String(length=100), nullable=True),
        sa.Column("nationality", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("postal_code", sa.String(length=10), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=50), nullable=True),
        sa.Column("passport_number", sa.String(length=50), nullable=True),
        # Finances
        sa.Column("monthly_income", sa.Numeric(10, 2), nullable=True),
        sa.Column("income_currency", sa.String(length=3), nullable=False),
        sa.Column("family_allowance", sa.Numeric(10, 2), nullable=True),
        sa.Column("monthly_rent", sa.Numeric(10, 2), nullable=True),
        sa.Column("possible_contribution", sa.Numeric(10, 2), nullable=True),
        sa.Column("contribution_currency", sa.String(length=3), nullable=False),
        sa.Column("scholarship_requested", sa.Numeric(10, 2), nullable=True),
        sa.Column("scholarship_proposed", sa.Numeric(10, 2), nullable=True),
        sa.Column("scholarship_validated", sa.Numeric(10, 2), nullable=True),
        # Documents
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column("documents", sa.JSON(), nullable=False),
    )
    op.create_index("ix_registrations_code", "registrations", ["code"], unique=True)
    op.create_index("ix_registrations_session", "registrations", ["session"])
    op.create_index("ix_registrations_status_code", "registrations", ["status_code"])
    op.create_index("ix_registrations_last_name", "registrations", ["last_name"])

    op.create_table(
        "status_transitions",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column(
            "registration_id",
            sa.Uuid(),
            sa.ForeignKey("registrations.id"),
            nullable=False,
        ),
        sa.Column("previous_status_code", sa.String(length=32), nullable=True),
        sa.Column("new_status_code", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "actor_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
        sa.Column("origin_address", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_status_transitions_registration_created",
        "status_transitions",
        ["registration_id", "created_at"],
    )

    op.create_table(
        "registration_counters",
        sa.Column("bucket", sa.String(length=16), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("registration_counters")
    op.drop_index("ix_status_transitions_registration_created", table_name="status_transitions")
    op.drop_table("status_transitions")
    op.drop_index("ix_registrations_last_name", table_name="registrations")
    op.drop_index("ix_registrations_status_code", table_name="registrations")
    op.drop_index("ix_registrations_session", table_name="registrations")
    op.drop_index("ix_registrations_code", table_name="registrations")
    op.drop_table("registrations")
    op.drop_index("ix_admin_sessions_expires_at", table_name="admin_sessions")
    op.drop_index("ix_admin_sessions_token_hash", table_name="admin_sessions")
    op.drop_index("ix_admin_sessions_user_id", table_name="admin_sessions")
    op.drop_table("admin_sessions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
    op.drop_table("statuses")
