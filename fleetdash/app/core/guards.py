"""
Security guards for administrative mutations.

Provides the admin dependency and the checks that protect role and user
writes. Unlike navigation, these never trust the session alone: the
caller's roles are re-read from the database on every request, so a demoted
administrator's still-valid token cannot keep issuing mutations.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from fastapi import Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.config import settings
from fleetdash.app.core.dependencies import get_current_session
from fleetdash.app.core.exceptions import AuthorizationError, ConflictError
from fleetdash.app.core.logging_config import get_logger
from fleetdash.app.core.permissions import ADMIN_ROLE_NAME
from fleetdash.app.core.session import SessionPrincipal
from fleetdash.app.db.session import get_db
from fleetdash.app.models.role import Role
from fleetdash.app.models.user import User
from fleetdash.app.models.user_role_assignment import UserRoleAssignment
from fleetdash.app.services.role_registry import RoleRegistry
from fleetdash.app.services.users import list_role_names_for_user

logger = get_logger("guards")


@dataclass(frozen=True)
class AdminContext:
    """Authenticated administrator, verified against the database."""
    user: User
    session: SessionPrincipal


async def require_admin(
    session: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
) -> AdminContext:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.delete("/admin/roles/{role_id}")
        async def delete_role(role_id: int, admin: AdminContext = Depends(require_admin)):
            ...

    Raises:
        AuthenticationError 401 if the session token is missing or invalid
        AuthorizationError 403 if the session role is not ADMIN, or the
            account is no longer an active administrator in the database
    """
    if session.claims.role != ADMIN_ROLE_NAME:
        raise AuthorizationError("Admin access required")

    result = await db.execute(select(User).where(User.id == session.identity_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise AuthorizationError("Admin access required")

    current_roles = await list_role_names_for_user(db, user.id)
    if ADMIN_ROLE_NAME not in current_roles:
        logger.warning("Rejected admin request from demoted user %s", user.id)
        raise AuthorizationError("Admin access required")

    return AdminContext(user=user, session=session)


def is_protected_account(user: User) -> bool:
    return user.email.lower() == settings.protected_admin_email.lower()


class AdminMutationGuard:
    """
    Invariant checks for role and user mutations, applied regardless of caller.

    Usage:
        guard = AdminMutationGuard(db)
        await guard.enforce_user_deletion(target_user)
        await delete_user(db, target_user)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def enforce_role_deletion(self, role: Role):
        """Reject deleting a role that any user is still assigned to."""
        assigned = await RoleRegistry(self.db).count_users_for_role(role.id)
        if assigned > 0:
            raise ConflictError(
                message="Cannot delete role with assigned users. Please reassign users first.",
                details={"role": role.name, "assigned_users": assigned}
            )

    async def enforce_user_deletion(self, user: User):
        if is_protected_account(user):
            raise AuthorizationError("The built-in administrator account cannot be deleted")

        if await self._is_admin(user):
            await self.ensure_admin_remains(excluding_user_id=user.id)

    async def enforce_deactivation(self, user: User):
        if is_protected_account(user):
            raise AuthorizationError("The built-in administrator account cannot be deactivated")

        if await self._is_admin(user):
            await self.ensure_admin_remains(excluding_user_id=user.id)

    async def enforce_user_update(self, user: User, email: Optional[str] = None, is_active: Optional[bool] = None):
        if email is not None and is_protected_account(user) and email.lower() != user.email.lower():
            raise AuthorizationError("The built-in administrator account cannot change its email")

        if is_active is False and user.is_active:
            await self.enforce_deactivation(user)

    async def enforce_role_assignment(self, user: User, role_names: Sequence[str]):
        """Reject stripping ADMIN from the protected account or from the last administrator."""
        if ADMIN_ROLE_NAME in role_names:
            return

        if is_protected_account(user):
            raise AuthorizationError("The built-in administrator account must keep the ADMIN role")

        if await self._is_admin(user):
            await self.ensure_admin_remains(excluding_user_id=user.id)

    async def ensure_admin_remains(self, excluding_user_id: int):
        """
        Require another active administrator besides ``excluding_user_id``.

        The administrator assignment rows are locked for the rest of the
        transaction so two concurrent demotions cannot both pass.
        """
        locked = await self.db.execute(
            select(UserRoleAssignment.id)
            .where(UserRoleAssignment.role_name == ADMIN_ROLE_NAME)
            .with_for_update()
        )
        locked.all()

        result = await self.db.execute(
            select(func.count(UserRoleAssignment.id))
            .join(User, User.id == UserRoleAssignment.user_id)
            .where(
                UserRoleAssignment.role_name == ADMIN_ROLE_NAME,
                UserRoleAssignment.user_id != excluding_user_id,
                User.is_active.is_(True),
            )
        )
        if (result.scalar() or 0) == 0:
            raise ConflictError(
                message="At least one active administrator must remain",
                details={"user_id": excluding_user_id}
            )

    async def _is_admin(self, user: User) -> bool:
        return ADMIN_ROLE_NAME in await list_role_names_for_user(self.db, user.id)
