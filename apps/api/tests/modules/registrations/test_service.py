"""
Tests for registration service functions with a mocked store.

These tests verify the error paths of the service layer:
- Unknown registrations and statuses
- Policy refusals
- Intake retry on unique-key conflicts
- Store failures mapped to service errors, with rollback
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.errors import ConflictOnWriteError, StoreUnavailableError
from app.modules.registrations.models import Registration, StatusTransition
from app.modules.registrations.policy import (
    InvalidStatusTransitionError,
    TransitionGraphPolicy,
)
from app.modules.registrations.schemas import RegistrationCreateRequest
from app.modules.registrations.service import (
    InvalidStatusError,
    RegistrationNotFoundError,
    get_history,
    get_stats,
    submit_registration,
    transition,
)
from app.modules.statuses.models import Status
from app.modules.statuses.service import StatusNotFoundError

# ============================================
# Fixtures
# ============================================


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def sample_registration():
    registration = MagicMock(spec=Registration)
    registration.id = uuid4()
    registration.code = "2026_LEV_001"
    registration.status_code = "RECU"
    return registration


@pytest.fixture
def valide_status():
    return Status(code="VALIDE", label="Validée", color="#28a745", sort_order=5, is_active=True)


@pytest.fixture
def intake_form():
    return RegistrationCreateRequest(
        last_name="Levy",
        first_name="Sarah",
        email="sarah.levy@example.com",
        hebrew_level="2",
    )


def _integrity_error() -> IntegrityError:
    return IntegrityError("INSERT INTO registrations", {}, Exception("UNIQUE constraint failed"))


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


# ============================================
# Transition Tests
# ============================================


@pytest.mark.asyncio
async def test_transition_unknown_registration(mock_db):
    """Unknown code raises RegistrationNotFoundError and rolls back."""
    with patch("app.modules.registrations.service.repository") as mock_repo:
        mock_repo.get_registration_by_code = AsyncMock(return_value=None)

        with pytest.raises(RegistrationNotFoundError) as exc_info:
            await transition(mock_db, "2026_NOP_001", "VALIDE")

    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == "REGISTRATION_NOT_FOUND"
    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_transition_locks_the_registration_row(mock_db, sample_registration, valide_status):
    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
    ):
        mock_repo.get_registration_by_code = AsyncMock(return_value=sample_registration)
        mock_repo.add_transition = AsyncMock(return_value=MagicMock(spec=StatusTransition))
        mock_statuses.resolve_status = AsyncMock(return_value=valide_status)

        await transition(mock_db, "2026_LEV_001", "VALIDE")

    mock_repo.get_registration_by_code.assert_awaited_once_with(
        mock_db, "2026_LEV_001", for_update=True
    )


@pytest.mark.asyncio
async def test_transition_unknown_status(mock_db, sample_registration):
    """A code missing from the catalog raises InvalidStatusError."""
    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
    ):
        mock_repo.get_registration_by_code = AsyncMock(return_value=sample_registration)
        mock_repo.add_transition = AsyncMock()
        mock_statuses.resolve_status = AsyncMock(side_effect=StatusNotFoundError("NO_SUCH_CODE"))

        with pytest.raises(InvalidStatusError) as exc_info:
            await transition(mock_db, "2026_LEV_001", "NO_SUCH_CODE")

    assert exc_info.value.status_code == 400
    assert sample_registration.status_code == "RECU"
    mock_repo.add_transition.assert_not_awaited()
    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_transition_refused_by_policy(mock_db, sample_registration, valide_status):
    policy = TransitionGraphPolicy({"RECU": {"A_TRAITER"}})

    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
    ):
        mock_repo.get_registration_by_code = AsyncMock(return_value=sample_registration)
        mock_repo.add_transition = AsyncMock()
        mock_statuses.resolve_status = AsyncMock(return_value=valide_status)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            await transition(mock_db, "2026_LEV_001", "VALIDE", policy=policy)

    assert exc_info.value.status_code == 409
    assert sample_registration.status_code == "RECU"
    mock_repo.add_transition.assert_not_awaited()


@pytest.mark.asyncio
async def test_transition_records_previous_status(mock_db, sample_registration, valide_status):
    actor_id = uuid4()
    record = MagicMock(spec=StatusTransition)

    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
    ):
        mock_repo.get_registration_by_code = AsyncMock(return_value=sample_registration)
        mock_repo.add_transition = AsyncMock(return_value=record)
        mock_statuses.resolve_status = AsyncMock(return_value=valide_status)

        result = await transition(
            mock_db,
            "2026_LEV_001",
            "VALIDE",
            reason="dossier complet",
            actor_id=actor_id,
            actor_email="op@kadima.org",
            origin_address="203.0.113.9",
        )

    assert result is record
    assert sample_registration.status_code == "VALIDE"
    kwargs = mock_repo.add_transition.await_args.kwargs
    assert kwargs["previous_status_code"] == "RECU"
    assert kwargs["new_status_code"] == "VALIDE"
    assert kwargs["actor_id"] == actor_id
    assert kwargs["actor_email"] == "op@kadima.org"
    assert kwargs["created_at"] == sample_registration.updated_at
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_transition_store_unavailable(mock_db):
    with patch("app.modules.registrations.service.repository") as mock_repo:
        mock_repo.get_registration_by_code = AsyncMock(side_effect=_operational_error())

        with pytest.raises(StoreUnavailableError) as exc_info:
            await transition(mock_db, "2026_LEV_001", "VALIDE")

    assert exc_info.value.status_code == 503
    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_transition_commit_conflict(mock_db, sample_registration, valide_status):
    mock_db.commit = AsyncMock(side_effect=_integrity_error())

    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
    ):
        mock_repo.get_registration_by_code = AsyncMock(return_value=sample_registration)
        mock_repo.add_transition = AsyncMock(return_value=MagicMock(spec=StatusTransition))
        mock_statuses.resolve_status = AsyncMock(return_value=valide_status)

        with pytest.raises(ConflictOnWriteError):
            await transition(mock_db, "2026_LEV_001", "VALIDE")

    mock_db.rollback.assert_awaited_once()


# ============================================
# History & Stats Tests
# ============================================


@pytest.mark.asyncio
async def test_history_unknown_registration(mock_db):
    with patch("app.modules.registrations.service.repository") as mock_repo:
        mock_repo.get_registration_by_code = AsyncMock(return_value=None)

        with pytest.raises(RegistrationNotFoundError):
            await get_history(mock_db, "2026_NOP_001")


@pytest.mark.asyncio
async def test_stats_total_is_sum_of_counts(mock_db):
    with patch("app.modules.registrations.service.repository") as mock_repo:
        mock_repo.count_by_status = AsyncMock(return_value={"RECU": 3, "VALIDE": 2})

        stats = await get_stats(mock_db)

    assert stats == {"total": 5, "by_status": {"RECU": 3, "VALIDE": 2}}


# ============================================
# Intake Tests
# ============================================


@pytest.mark.asyncio
async def test_intake_retries_once_on_conflict(mock_db, intake_form):
    registration = MagicMock(spec=Registration)
    registration.code = "2026_LEV_002"
    registration.last_name = "Levy"
    registration.first_name = "Sarah"

    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.identifiers") as mock_identifiers,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
        patch(
            "app.modules.registrations.service._send_intake_emails", new_callable=AsyncMock
        ) as mock_emails,
    ):
        mock_statuses.get_default_status = AsyncMock(return_value=MagicMock(code="RECU"))
        mock_identifiers.reserve = AsyncMock(side_effect=["2026_LEV_001", "2026_LEV_002"])
        mock_repo.create_registration = AsyncMock(side_effect=[_integrity_error(), registration])

        result = await submit_registration(mock_db, intake_form, session_year=2026)

    assert result is registration
    assert mock_identifiers.reserve.await_count == 2
    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_awaited_once()
    mock_emails.assert_awaited_once_with(registration)


@pytest.mark.asyncio
async def test_intake_conflict_after_retry(mock_db, intake_form):
    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.identifiers") as mock_identifiers,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
        patch(
            "app.modules.registrations.service._send_intake_emails", new_callable=AsyncMock
        ) as mock_emails,
    ):
        mock_statuses.get_default_status = AsyncMock(return_value=MagicMock(code="RECU"))
        mock_identifiers.reserve = AsyncMock(side_effect=["2026_LEV_001", "2026_LEV_002"])
        mock_repo.create_registration = AsyncMock(side_effect=_integrity_error())

        with pytest.raises(ConflictOnWriteError) as exc_info:
            await submit_registration(mock_db, intake_form, session_year=2026)

    assert exc_info.value.status_code == 409
    assert mock_db.rollback.await_count == 2
    mock_db.commit.assert_not_awaited()
    mock_emails.assert_not_awaited()


@pytest.mark.asyncio
async def test_intake_store_unavailable(mock_db, intake_form):
    with (
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
        patch(
            "app.modules.registrations.service._send_intake_emails", new_callable=AsyncMock
        ) as mock_emails,
    ):
        mock_statuses.get_default_status = AsyncMock(side_effect=_operational_error())

        with pytest.raises(StoreUnavailableError):
            await submit_registration(mock_db, intake_form, session_year=2026)

    mock_emails.assert_not_awaited()


@pytest.mark.asyncio
async def test_intake_keeps_extra_form_answers(mock_db, intake_form):
    registration = MagicMock(spec=Registration)

    with (
        patch("app.modules.registrations.service.repository") as mock_repo,
        patch("app.modules.registrations.service.identifiers") as mock_identifiers,
        patch("app.modules.registrations.service.statuses_service") as mock_statuses,
        patch("app.modules.registrations.service._send_intake_emails", new_callable=AsyncMock),
    ):
        mock_statuses.get_default_status = AsyncMock(return_value=MagicMock(code="RECU"))
        mock_identifiers.reserve = AsyncMock(return_value="2026_LEV_001")
        mock_repo.create_registration = AsyncMock(return_value=registration)

        await submit_registration(mock_db, intake_form, meta={"ip": "::1"}, session_year=2026)

    kwargs = mock_repo.create_registration.await_args.kwargs
    assert kwargs["code"] == "2026_LEV_001"
    assert kwargs["session"] == "2026-2027"
    assert kwargs["status_code"] == "RECU"
    assert kwargs["last_name"] == "Levy"
    assert kwargs["data"]["hebrew_level"] == "2"
    assert "hebrew_level" not in kwargs
    assert kwargs["meta"] == {"ip": "::1"}
