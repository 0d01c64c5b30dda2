"""
HTTP tests for admin login throttling.
"""

import pytest

from app.modules.auth.router import RATE_LIMIT_LOGIN


@pytest.mark.asyncio
async def test_login_limit_ignores_forwarded_header(client, operator):
    limit, _ = RATE_LIMIT_LOGIN

    for attempt in range(limit):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": operator.email, "password": "wrong-password"},
            headers={"X-Forwarded-For": f"192.0.2.{attempt}"},
        )
        assert response.status_code == 401

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": operator.email, "password": "wrong-password"},
        headers={"X-Forwarded-For": "192.0.2.250"},
    )

    assert response.status_code == 429
    assert response.json()["detail"]["error"] == "RATE_LIMIT_EXCEEDED"
