"""
HTTP tests for operator management.
"""

import pytest

from app.modules.users.models import UserRole


@pytest.mark.asyncio
async def test_admin_creates_and_lists_operators(client, login):
    headers = await login()

    created = await client.post(
        "/api/v1/admin/users",
        headers=headers,
        json={"email": "staff@kadima.org", "password": "staff-password", "role": "staff"},
    )
    listed = await client.get("/api/v1/admin/users", headers=headers)

    assert created.status_code == 201
    assert created.json()["role"] == "staff"
    assert "password_hash" not in created.json()
    assert {u["email"] for u in listed.json()["users"]} == {
        "operator@kadima.org",
        "staff@kadima.org",
    }


@pytest.mark.asyncio
async def test_staff_cannot_manage_operators(client, login):
    headers = await login(email="staff@kadima.org", role=UserRole.STAFF)

    response = await client.get("/api/v1/admin/users", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(client, login):
    headers = await login()

    response = await client.post(
        "/api/v1/admin/users",
        headers=headers,
        json={"email": "operator@kadima.org", "password": "whatever-pass"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "DUPLICATE_EMAIL"


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(client, login):
    headers = await login()
    me = (await client.get("/api/v1/auth/verify", headers=headers)).json()["user"]

    response = await client.delete(f"/api/v1/admin/users/{me['id']}", headers=headers)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "CANNOT_DELETE_SELF"


@pytest.mark.asyncio
async def test_deactivated_operator_loses_access(client, login):
    admin_headers = await login()
    staff_headers = await login(email="staff@kadima.org", role=UserRole.STAFF)
    users = (await client.get("/api/v1/admin/users", headers=admin_headers)).json()["users"]
    staff_id = next(u["id"] for u in users if u["email"] == "staff@kadima.org")

    patched = await client.patch(
        f"/api/v1/admin/users/{staff_id}", headers=admin_headers, json={"is_active": False}
    )
    verify = await client.get("/api/v1/auth/verify", headers=staff_headers)

    assert patched.status_code == 200
    assert verify.status_code == 401
    assert verify.json()["detail"]["error"] == "ACCOUNT_INACTIVE"
