"""
Default data: the built-in roles and the protected administrator account.

Idempotent; existing rows are left untouched.
"""

from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.config import settings
from fleetdash.app.core.logging_config import get_logger
from fleetdash.app.core.permissions import ADMIN_ROLE_NAME, DEFAULT_ROLES
from fleetdash.app.services.role_registry import RoleRegistry
from fleetdash.app.services.users import create_user, find_user_by_email

logger = get_logger("seed")


async def seed_defaults(db: AsyncSession) -> Dict[str, List[str]]:
    """
    Create missing default roles and the protected administrator.

    Returns:
        {"roles": [created role names], "users": [created emails]}
    """
    registry = RoleRegistry(db)
    created: Dict[str, List[str]] = {"roles": [], "users": []}

    for defaults in DEFAULT_ROLES:
        if await registry.find_role_by_name(defaults.name) is not None:
            continue

        await registry.create_role(
            name=defaults.name,
            display_name=defaults.display_name,
            description=defaults.description,
            permissions=[permission.value for permission in defaults.permissions],
            allowed_pages=defaults.allowed_pages,
            default_landing_page=defaults.default_landing_page,
            is_system=defaults.is_system,
            priority=defaults.priority,
        )
        created["roles"].append(defaults.name)

    if await find_user_by_email(db, settings.protected_admin_email) is None:
        await create_user(
            db,
            email=settings.protected_admin_email,
            password=settings.protected_admin_password,
            display_name="Administrátor",
            role_names=[ADMIN_ROLE_NAME],
        )
        created["users"].append(settings.protected_admin_email)

    logger.info("Seeded roles=%s users=%s", created["roles"], created["users"])
    return created
