"""
Integration tests for the authentication flow.

Verifies Login -> Me -> Refresh and that claims are a snapshot taken at
login time.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from fleetdash.app.core.config import settings
from fleetdash.app.core.session import read_session_token
from fleetdash.app.models.audit_log import AuditLog
from fleetdash.app.services.audit import AuditAction
from fleetdash.app.services.role_registry import RoleRegistry


@pytest.mark.asyncio
async def test_login_returns_resolved_claims(client, seeded, make_user):
    await make_user("dispecer@fleet.cz", roles=["DISPECER"], display_name="Jana")

    response = await client.post(
        "/v1/auth/login", json={"email": "dispecer@fleet.cz", "password": "secret123"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "DISPECER"
    assert data["permissions"] == ["manage_vehicles"]
    assert data["allowed_pages"] == ["/dashboard/auta"]
    assert data["default_landing_page"] == "/dashboard/auta"
    assert data["display_name"] == "Jana"

    set_cookie = response.headers["set-cookie"]
    assert f"{settings.session_cookie_name}={data['access_token']}" in set_cookie
    assert "httponly" in set_cookie.lower()

    principal = read_session_token(data["access_token"])
    assert principal.email == "dispecer@fleet.cz"
    assert principal.claims.allowed_pages == ("/dashboard/auta",)


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(client, seeded):
    response = await client.post(
        "/v1/auth/login",
        json={"email": settings.protected_admin_email.upper(), "password": settings.protected_admin_password}
    )
    assert response.status_code == 200
    assert response.json()["role"] == "ADMIN"


@pytest.mark.asyncio
async def test_login_wrong_password(client, seeded, session_factory):
    response = await client.post(
        "/v1/auth/login", json={"email": settings.protected_admin_email, "password": "wrong"}
    )

    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_001"
    assert response.headers["WWW-Authenticate"] == "Bearer"

    async with session_factory() as session:
        result = await session.execute(select(AuditLog).where(AuditLog.action == AuditAction.LOGIN_FAILED))
        log = result.scalar_one()
        assert log.meta_data == {"reason": "Invalid password"}


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post("/v1/auth/login", json={"email": "ghost@fleet.cz", "password": "secret123"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_inactive_user(client, seeded, make_user):
    await make_user("former@fleet.cz", roles=["USER"], is_active=False)

    response = await client.post("/v1/auth/login", json={"email": "former@fleet.cz", "password": "secret123"})

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_login_invalid_payload(client):
    response = await client.post("/v1/auth/login", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_user_without_roles_gets_empty_claims(client, seeded, make_user):
    await make_user("nobody@fleet.cz")

    response = await client.post("/v1/auth/login", json={"email": "nobody@fleet.cz", "password": "secret123"})

    data = response.json()
    assert data["role"] is None
    assert data["permissions"] == []
    assert data["allowed_pages"] == []
    assert data["default_landing_page"] == "/homepage"


@pytest.mark.asyncio
async def test_database_failure_fails_closed(client, seeded, mocker):
    mocker.patch(
        "fleetdash.app.services.claims_resolver.list_role_names_for_user",
        side_effect=SQLAlchemyError("database unavailable"),
    )

    response = await client.post(
        "/v1/auth/login",
        json={"email": settings.protected_admin_email, "password": settings.protected_admin_password}
    )

    assert response.status_code == 401
    assert "access_token" not in response.json()


@pytest.mark.asyncio
async def test_me_reflects_token(client, seeded, make_user, login):
    await make_user("manager@fleet.cz", roles=["MANAGER"])
    headers = await login("manager@fleet.cz")

    response = await client.get("/v1/auth/me", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "manager@fleet.cz"
    assert data["role"] == "MANAGER"
    assert data["permissions"] == ["manage_distribution", "view_dashboard", "view_reports"]


@pytest.mark.asyncio
async def test_me_requires_token(client):
    response = await client.get("/v1/auth/me")
    assert response.status_code == 401

    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_role_edits_apply_only_after_refresh(client, seeded, make_user, login, db_session):
    await make_user("dispecer@fleet.cz", roles=["DISPECER"])
    headers = await login("dispecer@fleet.cz")

    registry = RoleRegistry(db_session)
    role = await registry.get_role("DISPECER")
    await registry.update_role(role.id, allowed_pages=["/dashboard/auta", "/dashboard/opravy"])

    stale = await client.get("/v1/auth/me", headers=headers)
    assert stale.json()["allowed_pages"] == ["/dashboard/auta"]

    refreshed = await client.post("/v1/auth/refresh", headers=headers)
    assert refreshed.status_code == 200
    assert refreshed.json()["allowed_pages"] == ["/dashboard/auta", "/dashboard/opravy"]

    new_headers = {"Authorization": f"Bearer {refreshed.json()['access_token']}"}
    current = await client.get("/v1/auth/me", headers=new_headers)
    assert current.json()["allowed_pages"] == ["/dashboard/auta", "/dashboard/opravy"]


@pytest.mark.asyncio
async def test_preference_overrides_landing_page(client, seeded, make_user, admin_headers):
    user = await make_user("manager@fleet.cz", roles=["MANAGER"])
    response = await client.put(
        f"/v1/admin/users/{user.id}/preferences",
        json={"default_landing_page": "/dashboard/grafy"},
        headers=admin_headers
    )
    assert response.status_code == 200

    login_response = await client.post(
        "/v1/auth/login", json={"email": "manager@fleet.cz", "password": "secret123"}
    )
    assert login_response.json()["default_landing_page"] == "/dashboard/grafy"


@pytest.mark.asyncio
async def test_refresh_rejects_deactivated_user(client, seeded, make_user, login, db_session):
    user = await make_user("user@fleet.cz", roles=["USER"])
    headers = await login("user@fleet.cz")

    user.is_active = False
    await db_session.commit()

    response = await client.post("/v1/auth/refresh", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    response = await client.post("/v1/auth/logout")

    assert response.status_code == 200
    assert settings.session_cookie_name in response.headers["set-cookie"]
