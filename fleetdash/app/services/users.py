"""
User account and role-assignment storage.

Reads used at login (assigned role names, preference override) and the
writes behind the user-management endpoints. Authorization of those writes
is the caller's job, see core.guards.AdminMutationGuard.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from fleetdash.app.core.security import get_password_hash
from fleetdash.app.models.role import Role
from fleetdash.app.models.user import User
from fleetdash.app.models.user_preference import UserPreference
from fleetdash.app.models.user_role_assignment import UserRoleAssignment
from fleetdash.app.services.navigation import is_known_page
from fleetdash.app.services.path_matcher import is_entry_page, normalize_path

PREFERENCE_FIELDS = (
    "default_landing_page", "theme", "language",
    "email_notifications", "push_notifications", "sms_notifications",
    "compact_mode", "show_avatars", "auto_refresh",
)


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def list_users(db: AsyncSession, page: int = 1, page_size: int = 50) -> Tuple[List[User], int]:
    total = (await db.execute(select(func.count(User.id)))).scalar() or 0

    offset = (page - 1) * page_size
    result = await db.execute(select(User).order_by(User.id).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def list_role_names_for_user(db: AsyncSession, user_id: int) -> List[str]:
    """Assigned role names in assignment order."""
    result = await db.execute(
        select(UserRoleAssignment.role_name)
        .where(UserRoleAssignment.user_id == user_id)
        .order_by(UserRoleAssignment.position, UserRoleAssignment.id)
    )
    return list(result.scalars().all())


async def role_names_by_user(db: AsyncSession, user_ids: Sequence[int]) -> Dict[int, List[str]]:
    grouped: Dict[int, List[str]] = {user_id: [] for user_id in user_ids}
    if not user_ids:
        return grouped

    result = await db.execute(
        select(UserRoleAssignment.user_id, UserRoleAssignment.role_name)
        .where(UserRoleAssignment.user_id.in_(list(user_ids)))
        .order_by(UserRoleAssignment.user_id, UserRoleAssignment.position, UserRoleAssignment.id)
    )
    for user_id, role_name in result.all():
        grouped[user_id].append(role_name)
    return grouped


async def find_preference(db: AsyncSession, user_id: int) -> Optional[UserPreference]:
    result = await db.execute(select(UserPreference).where(UserPreference.user_id == user_id))
    return result.scalar_one_or_none()


async def _validate_role_names(db: AsyncSession, role_names: Sequence[str]) -> List[str]:
    """Deduplicate (keeping order) and reject names with no role row."""
    ordered: List[str] = []
    for name in role_names:
        if name not in ordered:
            ordered.append(name)

    if not ordered:
        return ordered

    result = await db.execute(select(Role.name).where(Role.name.in_(ordered)))
    known = set(result.scalars().all())
    unknown = [name for name in ordered if name not in known]
    if unknown:
        raise ValidationError(message="Unknown roles", details={"unknown_roles": unknown})
    return ordered


def _assignments(user_id: int, role_names: Sequence[str]) -> List[UserRoleAssignment]:
    return [
        UserRoleAssignment(user_id=user_id, role_name=name, position=position)
        for position, name in enumerate(role_names)
    ]


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    display_name: Optional[str] = None,
    role_names: Sequence[str] = (),
    is_active: bool = True,
) -> User:
    """
    Create a user with its ordered role assignments.

    Raises:
        ValidationError: unknown role names
        ConflictError: email already registered
    """
    roles = await _validate_role_names(db, role_names)

    if await find_user_by_email(db, email) is not None:
        raise ConflictError(message="Email already registered", details={"email": email})

    user = User(
        email=email,
        display_name=display_name,
        hashed_password=get_password_hash(password),
        is_active=is_active,
    )
    db.add(user)

    try:
        await db.flush()
        db.add_all(_assignments(user.id, roles))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(message="Email already registered", details={"email": email})

    await db.refresh(user)
    return user


async def update_user(
    db: AsyncSession,
    user: User,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
    is_active: Optional[bool] = None,
    password: Optional[str] = None,
) -> User:
    if email is not None and email.lower() != user.email.lower():
        if await find_user_by_email(db, email) is not None:
            raise ConflictError(message="Email already registered", details={"email": email})
        user.email = email
    if display_name is not None:
        user.display_name = display_name
    if is_active is not None:
        user.is_active = is_active
    if password is not None:
        user.hashed_password = get_password_hash(password)

    await db.commit()
    await db.refresh(user)
    return user


async def set_user_roles(db: AsyncSession, user: User, role_names: Sequence[str]) -> List[str]:
    """Replace every assignment of the user with ``role_names`` in the given order."""
    roles = await _validate_role_names(db, role_names)

    await db.execute(delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user.id))
    db.add_all(_assignments(user.id, roles))
    await db.commit()
    return roles


async def delete_user(db: AsyncSession, user: User) -> None:
    await db.execute(delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user.id))
    await db.execute(delete(UserPreference).where(UserPreference.user_id == user.id))
    await db.delete(user)
    await db.commit()


def validate_landing_page(page: Optional[str]) -> Optional[str]:
    """A preferred landing page must be a catalogued page (sub-routes of one included)."""
    if page is None:
        return None

    if is_known_page(page) and not is_entry_page(page):
        return normalize_path(page)

    raise ValidationError(
        message="Invalid default landing page",
        details={"default_landing_page": page}
    )


async def upsert_preference(db: AsyncSession, user_id: int, values: Dict[str, Any]) -> UserPreference:
    """
    Create or update the preference row of a user.

    Only keys in PREFERENCE_FIELDS are applied; a ``None`` landing page clears
    the override.
    """
    if "default_landing_page" in values:
        values = dict(values, default_landing_page=validate_landing_page(values["default_landing_page"]))

    preference = await find_preference(db, user_id)
    if preference is None:
        preference = UserPreference(user_id=user_id)
        db.add(preference)

    for field_name in PREFERENCE_FIELDS:
        if field_name in values:
            setattr(preference, field_name, values[field_name])

    await db.commit()
    await db.refresh(preference)
    return preference
