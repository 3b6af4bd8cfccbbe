"""
Database-backed claims resolution.

Loads a user's assigned roles and preference override and hands them to the
pure aggregation in services.claims. Any database failure is reported as an
authentication failure so that no session is issued on partial data.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.exceptions import AuthenticationError
from fleetdash.app.core.logging_config import get_logger
from fleetdash.app.core.permissions import is_admin_role
from fleetdash.app.models.user import User
from fleetdash.app.services.claims import AuthorizationClaims, resolve_claims
from fleetdash.app.services.role_registry import RoleRegistry
from fleetdash.app.services.users import find_preference, list_role_names_for_user

logger = get_logger("claims")


class ClaimsResolver:
    """
    Usage:
        claims = await ClaimsResolver(db).resolve_for_user(user)
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.registry = RoleRegistry(db)

    async def resolve_for_user(self, user: User, include_preference: bool = True) -> AuthorizationClaims:
        """
        Resolve the claims a new session of ``user`` receives.

        With ``include_preference=False`` the stored landing-page override is
        ignored, which yields the grant a new preference is checked against.
        """
        try:
            role_names = await list_role_names_for_user(self.db, user.id)
            preference = await find_preference(self.db, user.id) if include_preference else None

            # The administrator grant is hard-coded; its stored row is not read.
            if any(is_admin_role(name) for name in role_names):
                roles = {}
            else:
                roles = await self.registry.snapshots(role_names)
        except SQLAlchemyError:
            logger.exception("Claims resolution failed for user %s", user.id)
            raise AuthenticationError("Could not resolve authorization")

        landing = preference.default_landing_page if preference else None
        claims = resolve_claims(role_names, roles, landing)

        logger.info(
            "Resolved claims for user %s: role=%s permissions=%d pages=%d",
            user.id, claims.role, len(claims.permissions), len(claims.allowed_pages)
        )
        return claims
