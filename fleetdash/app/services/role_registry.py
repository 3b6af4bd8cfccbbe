"""
Role registry.

Storage of roles, their permission sets and their navigation grants.
Every write validates permission keys against the fixed vocabulary before
touching the database, so a rejected payload leaves no partial changes.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence

from sqlalchemy import select, func, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdash.app.core.logging_config import get_logger
from fleetdash.app.core.permissions import (
    ALL_PERMISSIONS,
    WILDCARD_PAGE,
    DEFAULT_LANDING_PAGE,
    invalid_permission_keys,
    to_permissions,
)
from fleetdash.app.models.enums import Permission
from fleetdash.app.models.role import Role, RolePermission
from fleetdash.app.models.user_role_assignment import UserRoleAssignment
from fleetdash.app.services.claims import RoleSnapshot
from fleetdash.app.services.path_matcher import is_allowed, is_entry_page

logger = get_logger("roles")

_UNSET = object()


@dataclass
class RoleGrant:
    """Validated navigation and permission grant of a role."""
    permissions: List[Permission]
    allowed_pages: List[str]
    default_landing_page: Optional[str]


def validate_role_grant(
    permission_keys: Sequence[str],
    allowed_pages: Sequence[str],
    default_landing_page: Optional[str],
) -> RoleGrant:
    """
    Validate a submitted grant as a whole.

    A role without allowed pages has no landing page of its own; its sessions
    fall back to the global default.

    Raises:
        ValidationError: unknown permission keys, malformed page patterns, a
            landing page not covered by allowed_pages, or an entry page
            (``/``, login, forbidden) used as the landing page
    """
    invalid = invalid_permission_keys(permission_keys)
    if invalid:
        raise ValidationError(
            message="Unknown permission keys",
            details={"invalid_permissions": invalid}
        )

    pages = []
    for page in allowed_pages:
        page = page.strip()
        if page != WILDCARD_PAGE and not page.startswith("/"):
            raise ValidationError(
                message="Allowed pages must be absolute paths or '*'",
                details={"invalid_page": page}
            )
        if page not in pages:
            pages.append(page)

    if default_landing_page is None:
        concrete = [page for page in pages if page != WILDCARD_PAGE and not is_entry_page(page)]
        if concrete:
            default_landing_page = concrete[0]
        elif pages:
            default_landing_page = DEFAULT_LANDING_PAGE

    if default_landing_page is not None:
        if is_entry_page(default_landing_page):
            raise ValidationError(
                message="Default landing page cannot be an entry page",
                details={"default_landing_page": default_landing_page}
            )
        if not is_allowed(default_landing_page, pages):
            raise ValidationError(
                message="Default landing page must be one of the allowed pages",
                details={"default_landing_page": default_landing_page, "allowed_pages": pages}
            )

    return RoleGrant(
        permissions=to_permissions(permission_keys),
        allowed_pages=pages,
        default_landing_page=default_landing_page,
    )


class RoleRegistry:
    """
    Role storage bound to one request-scoped database session.

    Usage:
        registry = RoleRegistry(db)
        role = await registry.get_role("DISPECER")
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def list_permission_keys() -> FrozenSet[Permission]:
        return ALL_PERMISSIONS

    # Reads

    async def find_role_by_name(self, name: str) -> Optional[Role]:
        result = await self.db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def get_role(self, name: str) -> Role:
        role = await self.find_role_by_name(name)
        if role is None:
            raise NotFoundError("Role", name)
        return role

    async def get_role_by_id(self, role_id: int) -> Role:
        result = await self.db.execute(select(Role).where(Role.id == role_id))
        role = result.scalar_one_or_none()
        if role is None:
            raise NotFoundError("Role", role_id)
        return role

    async def list_roles(self) -> List[Role]:
        result = await self.db.execute(select(Role).order_by(Role.priority.desc(), Role.name))
        return list(result.scalars().all())

    async def list_active_roles(self) -> List[Role]:
        result = await self.db.execute(
            select(Role).where(Role.is_active.is_(True)).order_by(Role.priority.desc(), Role.name)
        )
        return list(result.scalars().all())

    async def list_permissions_for_role(self, role_id: int) -> List[Permission]:
        result = await self.db.execute(
            select(RolePermission.permission)
            .where(RolePermission.role_id == role_id)
            .order_by(RolePermission.id)
        )
        return list(result.scalars().all())

    async def permissions_by_role(self, role_ids: Sequence[int]) -> Dict[int, List[Permission]]:
        """Permissions of several roles in one query."""
        grouped: Dict[int, List[Permission]] = {role_id: [] for role_id in role_ids}
        if not role_ids:
            return grouped

        result = await self.db.execute(
            select(RolePermission.role_id, RolePermission.permission)
            .where(RolePermission.role_id.in_(role_ids))
            .order_by(RolePermission.id)
        )
        for role_id, permission in result.all():
            grouped[role_id].append(permission)
        return grouped

    async def count_users_for_role(self, role_id: int) -> int:
        role = await self.get_role_by_id(role_id)
        result = await self.db.execute(
            select(func.count(UserRoleAssignment.id)).where(UserRoleAssignment.role_name == role.name)
        )
        return result.scalar() or 0

    async def user_counts(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(UserRoleAssignment.role_name, func.count(UserRoleAssignment.id))
            .group_by(UserRoleAssignment.role_name)
        )
        return {name: count for name, count in result.all()}

    async def snapshot(self, name: str) -> Optional[RoleSnapshot]:
        return (await self.snapshots([name])).get(name)

    async def snapshots(self, names: Sequence[str]) -> Dict[str, RoleSnapshot]:
        """Current state of the named roles; unknown names are absent from the result."""
        if not names:
            return {}

        result = await self.db.execute(select(Role).where(Role.name.in_(list(names))))
        roles = list(result.scalars().all())
        permissions = await self.permissions_by_role([role.id for role in roles])

        return {
            role.name: RoleSnapshot(
                name=role.name,
                permissions=tuple(permissions[role.id]),
                allowed_pages=tuple(role.allowed_pages or ()),
                default_landing_page=role.default_landing_page,
                is_active=role.is_active,
            )
            for role in roles
        }

    # Writes

    async def create_role(
        self,
        name: str,
        display_name: str,
        description: Optional[str] = None,
        permissions: Sequence[str] = (),
        allowed_pages: Sequence[str] = (),
        default_landing_page: Optional[str] = None,
        is_active: bool = True,
        is_system: bool = False,
        priority: int = 0,
        created_by: Optional[int] = None,
    ) -> Role:
        """
        Create a role with its permission rows.

        Raises:
            ValidationError: invalid grant
            ConflictError: name already taken
        """
        grant = validate_role_grant(permissions, allowed_pages, default_landing_page)

        if await self.find_role_by_name(name) is not None:
            raise ConflictError(
                message="Role with this name already exists",
                details={"name": name}
            )

        role = Role(
            name=name,
            display_name=display_name,
            description=description,
            allowed_pages=grant.allowed_pages,
            default_landing_page=grant.default_landing_page,
            is_active=is_active,
            is_system=is_system,
            priority=priority,
            created_by=created_by,
        )
        self.db.add(role)

        try:
            await self.db.flush()
            self.db.add_all(RolePermission(role_id=role.id, permission=p) for p in grant.permissions)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(message="Role with this name already exists", details={"name": name})

        await self.db.refresh(role)
        logger.info("Role %s created with permissions %s", role.name, [p.value for p in grant.permissions])
        return role

    async def update_role(
        self,
        role_id: int,
        name: Optional[str] = None,
        display_name: Optional[str] = None,
        description=_UNSET,
        permissions: Optional[Sequence[str]] = None,
        allowed_pages: Optional[Sequence[str]] = None,
        default_landing_page=_UNSET,
        is_active: Optional[bool] = None,
        priority: Optional[int] = None,
    ) -> Role:
        """
        Update a role. ``None`` keeps the current value.

        Replacing permissions deletes every existing permission row of the role
        and inserts the submitted set in the same transaction. A rename also
        rewrites the role name on existing user assignments.

        Raises:
            NotFoundError: unknown role id
            ValidationError: invalid grant (nothing is applied)
            ConflictError: duplicate name, or renaming/deactivating a system role
        """
        role = await self.get_role_by_id(role_id)

        current_permissions = await self.list_permissions_for_role(role.id)
        permission_keys = (
            list(permissions) if permissions is not None
            else [permission.value for permission in current_permissions]
        )
        pages = list(allowed_pages) if allowed_pages is not None else list(role.allowed_pages or [])
        if default_landing_page is not _UNSET:
            landing = default_landing_page
        elif role.default_landing_page and is_allowed(role.default_landing_page, pages):
            landing = role.default_landing_page
        else:
            # Narrowed grant without an explicit landing page: pick a new default
            landing = None

        grant = validate_role_grant(permission_keys, pages, landing)

        renamed = name is not None and name != role.name
        if role.is_system and renamed:
            raise ConflictError(message="Cannot rename a system role", details={"role": role.name})
        if role.is_system and is_active is False:
            raise ConflictError(message="Cannot deactivate a system role", details={"role": role.name})
        if renamed and await self.find_role_by_name(name) is not None:
            raise ConflictError(message="Role with this name already exists", details={"name": name})

        old_name = role.name
        if renamed:
            role.name = name
            await self.db.execute(
                update(UserRoleAssignment)
                .where(UserRoleAssignment.role_name == old_name)
                .values(role_name=name)
            )
        if display_name is not None:
            role.display_name = display_name
        if description is not _UNSET:
            role.description = description
        if is_active is not None:
            role.is_active = is_active
        if priority is not None:
            role.priority = priority
        role.allowed_pages = grant.allowed_pages
        role.default_landing_page = grant.default_landing_page

        if permissions is not None:
            await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role.id))
            self.db.add_all(RolePermission(role_id=role.id, permission=p) for p in grant.permissions)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(message="Role update conflicts with existing data", details={"role_id": role_id})

        await self.db.refresh(role)
        logger.info("Role %s updated (was %s)", role.name, old_name)
        return role

    async def delete_role(self, role_id: int) -> Role:
        """
        Delete an unassigned, non-system role.

        Raises:
            NotFoundError: unknown role id
            ConflictError: system role, or users still assigned
        """
        role = await self.get_role_by_id(role_id)

        if role.is_system:
            raise ConflictError(message="Cannot delete system role", details={"role": role.name})

        assigned = await self.count_users_for_role(role.id)
        if assigned > 0:
            raise ConflictError(
                message="Cannot delete role with assigned users. Please reassign users first.",
                details={"role": role.name, "assigned_users": assigned}
            )

        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role.id))
        await self.db.delete(role)
        await self.db.commit()

        logger.info("Role %s deleted", role.name)
        return role
