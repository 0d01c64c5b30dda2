"""
Tests for registration emails.
"""

from datetime import UTC, datetime
from unittest.mock import patch

import pytest
import resend

from app.core import email
from app.core.config import settings


@pytest.mark.asyncio
async def test_without_api_key_email_is_logged(caplog):
    with patch.object(resend, "api_key", None), caplog.at_level("INFO", logger="app.core.email"):
        sent = await email.send_email("someone@example.com", "Subject", "Body")

    assert sent is True
    assert "SUBJECT: Subject" in caplog.text


@pytest.mark.asyncio
async def test_notification_goes_to_back_office():
    with (
        patch.object(resend, "api_key", "re_test"),
        patch.object(resend.Emails, "send", return_value={"id": "email-1"}) as send,
    ):
        sent = await email.send_registration_notification(
            code="2026_LEV_001",
            last_name="Levy",
            first_name="Sarah",
            email="sarah.levy@example.com",
            phone=None,
            received_at=datetime(2026, 3, 1, 8, 30, tzinfo=UTC),
        )

    assert sent is True
    params = send.call_args.args[0]
    assert params["to"] == [settings.notification_recipient]
    assert params["subject"] == "[2026_LEV_001] Nouvelle inscription: Levy Sarah"
    assert "NIU: 2026_LEV_001" in params["text"]
    assert "Non renseigné" in params["text"]
    # Jerusalem is UTC+2 in early March
    assert "01/03/2026 10:30:00" in params["text"]


@pytest.mark.asyncio
async def test_acknowledgement_escapes_html():
    with (
        patch.object(resend, "api_key", "re_test"),
        patch.object(resend.Emails, "send", return_value={"id": "email-2"}) as send,
    ):
        await email.send_registration_acknowledgement("sarah.levy@example.com", "2026_<B>_001")

    params = send.call_args.args[0]
    assert params["to"] == ["sarah.levy@example.com"]
    assert "2026_<B>_001" in params["text"]
    assert "2026_&lt;B&gt;_001" in params["html"]


@pytest.mark.asyncio
async def test_provider_failure_returns_false():
    with (
        patch.object(resend, "api_key", "re_test"),
        patch.object(resend.Emails, "send", side_effect=RuntimeError("provider down")),
    ):
        sent = await email.send_email("someone@example.com", "Subject", "Body")

    assert sent is False
