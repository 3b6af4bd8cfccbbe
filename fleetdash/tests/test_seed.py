"""
Tests for default data seeding.
"""

import pytest

from fleetdash.app.core.config import settings
from fleetdash.app.core.permissions import DEFAULT_ROLES
from fleetdash.app.core.security import verify_password
from fleetdash.app.services.role_registry import RoleRegistry
from fleetdash.app.services.seed import seed_defaults
from fleetdash.app.services.users import find_user_by_email, list_role_names_for_user


@pytest.mark.asyncio
async def test_seed_creates_defaults(db_session):
    created = await seed_defaults(db_session)

    assert created["roles"] == [defaults.name for defaults in DEFAULT_ROLES]
    assert created["users"] == [settings.protected_admin_email]

    admin = await find_user_by_email(db_session, settings.protected_admin_email)
    assert verify_password(settings.protected_admin_password, admin.hashed_password)
    assert await list_role_names_for_user(db_session, admin.id) == ["ADMIN"]

    dispecer = await RoleRegistry(db_session).get_role("DISPECER")
    assert dispecer.allowed_pages == ["/dashboard/auta"]
    assert dispecer.default_landing_page == "/dashboard/auta"


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session):
    await seed_defaults(db_session)

    assert await seed_defaults(db_session) == {"roles": [], "users": []}
    assert len(await RoleRegistry(db_session).list_roles()) == len(DEFAULT_ROLES)
