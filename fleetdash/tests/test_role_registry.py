"""
Tests for role storage and its validation rules.
"""

import pytest
from sqlalchemy import select, func

from fleetdash.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdash.app.models.enums import Permission
from fleetdash.app.models.role import Role, RolePermission
from fleetdash.app.models.user_role_assignment import UserRoleAssignment
from fleetdash.app.services.role_registry import RoleRegistry, validate_role_grant


async def _role_count(session_factory):
    async with session_factory() as session:
        return (await session.execute(select(func.count(Role.id)))).scalar()


class TestValidateRoleGrant:
    def test_unknown_keys_are_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_role_grant(["manage_vehicles", "fly", "swim"], ["/dashboard/auta"], None)
        assert exc_info.value.details["invalid_permissions"] == ["fly", "swim"]

    def test_relative_page_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_role_grant([], ["dashboard/auta"], None)

    def test_landing_page_must_be_covered(self):
        with pytest.raises(ValidationError):
            validate_role_grant([], ["/dashboard/auta"], "/dashboard/grafy")

    def test_landing_page_may_be_a_sub_route(self):
        grant = validate_role_grant([], ["/dashboard/auta"], "/dashboard/auta/mapa")
        assert grant.default_landing_page == "/dashboard/auta/mapa"

    def test_landing_page_defaults_to_first_concrete_page(self):
        grant = validate_role_grant(["view_reports"], ["*", "/dashboard/grafy", "/dashboard/grafy"], None)
        assert grant.allowed_pages == ["*", "/dashboard/grafy"]
        assert grant.default_landing_page == "/dashboard/grafy"
        assert grant.permissions == [Permission.VIEW_REPORTS]

    def test_empty_grant_has_no_landing_page(self):
        assert validate_role_grant([], [], None).default_landing_page is None
        with pytest.raises(ValidationError):
            validate_role_grant([], [], "/dashboard/grafy")

    @pytest.mark.parametrize("landing", ["/", "/login", "/login/", "/forbidden"])
    def test_entry_page_is_not_a_landing_page(self, landing):
        with pytest.raises(ValidationError):
            validate_role_grant([], ["*"], landing)

    def test_default_skips_entry_pages(self):
        grant = validate_role_grant([], ["/login", "/dashboard/grafy"], None)
        assert grant.default_landing_page == "/dashboard/grafy"


async def test_permission_keys_are_the_fixed_vocabulary():
    assert RoleRegistry.list_permission_keys() == frozenset(Permission)


async def test_create_and_read_role(db_session):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(
        name="DISPECER",
        display_name="Dispečer",
        permissions=["manage_vehicles"],
        allowed_pages=["/dashboard/auta"],
        default_landing_page="/dashboard/auta",
    )

    assert (await registry.get_role("DISPECER")).id == role.id
    assert await registry.list_permissions_for_role(role.id) == [Permission.MANAGE_VEHICLES]

    snapshot = await registry.snapshot("DISPECER")
    assert snapshot.allowed_pages == ("/dashboard/auta",)
    assert snapshot.permissions == (Permission.MANAGE_VEHICLES,)
    assert await registry.snapshot("NOPE") is None


async def test_unknown_role_raises_not_found(db_session):
    registry = RoleRegistry(db_session)
    assert await registry.find_role_by_name("NOPE") is None
    with pytest.raises(NotFoundError):
        await registry.get_role("NOPE")
    with pytest.raises(NotFoundError):
        await registry.get_role_by_id(999)


async def test_invalid_permissions_create_nothing(db_session, session_factory):
    with pytest.raises(ValidationError):
        await RoleRegistry(db_session).create_role(
            name="BROKEN", display_name="Broken", permissions=["manage_vehicles", "bogus"]
        )

    assert await _role_count(session_factory) == 0


async def test_duplicate_name_conflicts(db_session):
    registry = RoleRegistry(db_session)
    await registry.create_role(name="USER", display_name="User", allowed_pages=["/homepage"])

    with pytest.raises(ConflictError):
        await registry.create_role(name="USER", display_name="Again", allowed_pages=["/homepage"])


async def test_update_replaces_permission_set(db_session, session_factory):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(
        name="MANAGER", display_name="Manažer",
        permissions=["view_dashboard", "view_reports"], allowed_pages=["/homepage"]
    )

    await registry.update_role(role.id, permissions=["manage_distribution"])

    async with session_factory() as session:
        result = await session.execute(
            select(RolePermission.permission).where(RolePermission.role_id == role.id)
        )
        assert list(result.scalars().all()) == [Permission.MANAGE_DISTRIBUTION]


async def test_narrowed_pages_pick_a_new_landing_page(db_session):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(
        name="MANAGER", display_name="Manažer",
        allowed_pages=["/homepage", "/dashboard/grafy"], default_landing_page="/dashboard/grafy"
    )

    role = await registry.update_role(role.id, allowed_pages=["/dashboard/auta"])
    assert role.default_landing_page == "/dashboard/auta"

    role = await registry.update_role(role.id, allowed_pages=[])
    assert role.default_landing_page is None



async def test_invalid_update_leaves_role_untouched(db_session, session_factory):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(
        name="MANAGER", display_name="Manažer",
        permissions=["view_reports"], allowed_pages=["/dashboard/grafy"]
    )

    with pytest.raises(ValidationError):
        await registry.update_role(role.id, display_name="Renamed", permissions=["view_reports", "bogus"])

    async with session_factory() as session:
        stored = await RoleRegistry(session).get_role_by_id(role.id)
        assert stored.display_name == "Manažer"
        assert await RoleRegistry(session).list_permissions_for_role(role.id) == [Permission.VIEW_REPORTS]


async def test_rename_rewrites_assignments(db_session, session_factory, make_user):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(name="DRIVER", display_name="Řidič", allowed_pages=["/homepage"])
    user = await make_user("ridic@fleet.cz", roles=["DRIVER"])

    await registry.update_role(role.id, name="RIDIC")

    async with session_factory() as session:
        result = await session.execute(
            select(UserRoleAssignment.role_name).where(UserRoleAssignment.user_id == user.id)
        )
        assert list(result.scalars().all()) == ["RIDIC"]


async def test_delete_assigned_role_conflicts_without_mutation(db_session, session_factory, make_user):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(
        name="USER", display_name="User", permissions=["view_dashboard"], allowed_pages=["/homepage"]
    )
    await make_user("user@fleet.cz", roles=["USER"])

    assert await registry.count_users_for_role(role.id) == 1
    with pytest.raises(ConflictError) as exc_info:
        await registry.delete_role(role.id)
    assert exc_info.value.details["assigned_users"] == 1

    async with session_factory() as session:
        assert await RoleRegistry(session).find_role_by_name("USER") is not None
        assert await RoleRegistry(session).list_permissions_for_role(role.id) == [Permission.VIEW_DASHBOARD]


async def test_delete_unassigned_role(db_session, session_factory):
    registry = RoleRegistry(db_session)
    role = await registry.create_role(name="TEMP", display_name="Temp", permissions=["view_reports"])

    await registry.delete_role(role.id)

    assert await _role_count(session_factory) == 0


async def test_system_role_is_protected(db_session, seeded):
    registry = RoleRegistry(db_session)
    admin_role = await registry.get_role("ADMIN")

    with pytest.raises(ConflictError):
        await registry.update_role(admin_role.id, name="ROOT")
    with pytest.raises(ConflictError):
        await registry.update_role(admin_role.id, is_active=False)
    with pytest.raises(ConflictError):
        await registry.delete_role(admin_role.id)


async def test_active_roles_are_ordered_by_priority(db_session, seeded):
    registry = RoleRegistry(db_session)
    dispecer = await registry.get_role("DISPECER")
    await registry.update_role(dispecer.id, is_active=False)

    names = [role.name for role in await registry.list_active_roles()]
    assert names == ["ADMIN", "MANAGER", "RIDIC", "USER"]
    assert len(await registry.list_roles()) == 5
