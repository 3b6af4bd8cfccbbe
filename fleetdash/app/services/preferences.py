"""
User preference updates.

A landing-page override has to pass two checks before it is stored: it
must be a catalogued page, and the navigation grant the user currently
resolves to must cover it. Storage itself lives in services.users.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.exceptions import ValidationError
from fleetdash.app.core.logging_config import get_logger
from fleetdash.app.models.user import User
from fleetdash.app.models.user_preference import UserPreference
from fleetdash.app.services.claims_resolver import ClaimsResolver
from fleetdash.app.services.path_matcher import is_allowed
from fleetdash.app.services.users import upsert_preference, validate_landing_page

logger = get_logger("preferences")


async def update_preferences(db: AsyncSession, user: User, values: Dict[str, Any]) -> UserPreference:
    """
    Validate and store a partial preference update for ``user``.

    Raises:
        ValidationError: landing page outside the catalogue, or not covered
            by the user's current navigation grant
    """
    landing = values.get("default_landing_page")
    if landing is not None:
        landing = validate_landing_page(landing)
        claims = await ClaimsResolver(db).resolve_for_user(user, include_preference=False)
        if not is_allowed(landing, claims.allowed_pages):
            raise ValidationError(
                message="Default landing page is not accessible for the user's role",
                details={"default_landing_page": landing, "allowed_pages": list(claims.allowed_pages)}
            )
        values = dict(values, default_landing_page=landing)

    preference = await upsert_preference(db, user.id, values)
    logger.info("Preferences of user %s updated: %s", user.id, sorted(values))
    return preference
