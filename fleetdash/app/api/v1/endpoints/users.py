"""
Self-service user endpoints.

The signed-in user reads and edits their own preferences. The landing-page
override goes through the same checks as the admin route and takes effect
at the next login or session refresh.
"""

from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.dependencies import get_current_session
from fleetdash.app.core.exceptions import AuthenticationError
from fleetdash.app.core.session import SessionPrincipal
from fleetdash.app.db.session import get_db
from fleetdash.app.models.user import User
from fleetdash.app.schemas.admin import PreferencesPayload, PreferencesResponse
from fleetdash.app.services import users as user_service
from fleetdash.app.services.audit import log_event, AuditAction, AuditEntity
from fleetdash.app.services.preferences import update_preferences

router = APIRouter(prefix="/users", tags=["Users"])


async def _session_user(db: AsyncSession, session: SessionPrincipal) -> User:
    result = await db.execute(select(User).where(User.id == session.identity_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise AuthenticationError("Could not validate credentials")
    return user


@router.get("/me/preferences", response_model=PreferencesResponse)
async def get_my_preferences(
    session: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    user = await _session_user(db, session)
    preference = await user_service.find_preference(db, user.id)
    if preference is None:
        return PreferencesResponse(user_id=user.id)
    return PreferencesResponse.model_validate(preference)


@router.put("/me/preferences", response_model=PreferencesResponse)
async def update_my_preferences(
    payload: PreferencesPayload,
    session: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """Update own preferences. A landing page must lie within the user's allowed pages."""
    user = await _session_user(db, session)
    values: Dict = payload.model_dump(exclude_unset=True)
    preference = await update_preferences(db, user, values)

    await log_event(
        db=db,
        action=AuditAction.PREFERENCES_UPDATED,
        actor_id=user.id,
        actor_email=user.email,
        entity_type=AuditEntity.USER,
        entity_id=user.id,
        metadata=values
    )

    return PreferencesResponse.model_validate(preference)
