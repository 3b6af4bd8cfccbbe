"""
Admin API Endpoints.

Role and user management, restricted to administrators and audit logged.
Every endpoint re-checks the caller against the database through
require_admin; mutations additionally pass through AdminMutationGuard.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleetdash.app.db.session import get_db
from fleetdash.app.models.role import Role
from fleetdash.app.models.user import User
from fleetdash.app.schemas.admin import (
    UserCreate, UserUpdate, UserRolesUpdate, UserListItem, UserListResponse,
    EffectivePermissionsResponse, PreferencesPayload, PreferencesResponse,
    AuditTrailResponse, AuditLogResponse
)
from fleetdash.app.schemas.role import RoleCreate, RoleUpdate, RoleResponse, PermissionInfo, AvailablePage
from fleetdash.app.core.guards import AdminContext, AdminMutationGuard, require_admin
from fleetdash.app.core.permissions import AVAILABLE_PAGES, PERMISSION_LABELS
from fleetdash.app.models.enums import Permission
from fleetdash.app.services import users as user_service
from fleetdash.app.services.audit import log_admin_action, AuditAction, AuditEntity, get_audit_trail
from fleetdash.app.services.claims_resolver import ClaimsResolver
from fleetdash.app.services.preferences import update_preferences
from fleetdash.app.services.role_registry import RoleRegistry

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _role_response(
    registry: RoleRegistry,
    role: Role,
    permissions: Optional[List[Permission]] = None,
    user_count: Optional[int] = None
) -> RoleResponse:
    if permissions is None:
        permissions = await registry.list_permissions_for_role(role.id)
    if user_count is None:
        user_count = await registry.count_users_for_role(role.id)

    return RoleResponse(
        id=role.id,
        name=role.name,
        display_name=role.display_name,
        description=role.description,
        permissions=[permission.value for permission in permissions],
        allowed_pages=list(role.allowed_pages or []),
        default_landing_page=role.default_landing_page,
        is_active=role.is_active,
        is_system=role.is_system,
        priority=role.priority,
        user_count=user_count,
        created_at=role.created_at,
        updated_at=role.updated_at,
    )


def _user_item(user: User, roles: List[str]) -> UserListItem:
    return UserListItem(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        roles=roles,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


# Roles

@router.get("/roles", response_model=List[RoleResponse])
async def list_roles(
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List every role with its permissions and number of assigned users."""
    registry = RoleRegistry(db)
    roles = await registry.list_roles()
    permissions = await registry.permissions_by_role([role.id for role in roles])
    counts = await registry.user_counts()

    return [
        await _role_response(registry, role, permissions[role.id], counts.get(role.name, 0))
        for role in roles
    ]


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleCreate,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a role.

    Unknown permission keys reject the whole payload with 422; a taken name
    is a 409.
    """
    registry = RoleRegistry(db)
    role = await registry.create_role(
        name=payload.name,
        display_name=payload.display_name,
        description=payload.description,
        permissions=payload.permissions,
        allowed_pages=payload.allowed_pages,
        default_landing_page=payload.default_landing_page,
        is_active=payload.is_active,
        priority=payload.priority,
        created_by=admin.user.id,
    )

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.ROLE_CREATED,
        entity_type=AuditEntity.ROLE,
        entity_id=role.id,
        metadata={"name": role.name, "permissions": payload.permissions, "allowed_pages": role.allowed_pages}
    )

    return await _role_response(registry, role, user_count=0)


@router.get("/roles/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: int,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    registry = RoleRegistry(db)
    role = await registry.get_role_by_id(role_id)
    return await _role_response(registry, role)


@router.put("/roles/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: int,
    payload: RoleUpdate,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a role.

    Sessions already issued keep their claims until they refresh or log in
    again.
    """
    registry = RoleRegistry(db)
    before = await registry.get_role_by_id(role_id)
    old = {
        "name": before.name,
        "permissions": [p.value for p in await registry.list_permissions_for_role(role_id)],
        "allowed_pages": list(before.allowed_pages or []),
    }

    changes = payload.model_dump(exclude_unset=True)
    role = await registry.update_role(role_id, **changes)

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.ROLE_UPDATED,
        entity_type=AuditEntity.ROLE,
        entity_id=role.id,
        metadata={"old": old, "new": changes}
    )

    return await _role_response(registry, role)


@router.delete("/roles/{role_id}")
async def delete_role(
    role_id: int,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a role. Rejected with 409 while any user holds it, or for system roles."""
    registry = RoleRegistry(db)
    role = await registry.get_role_by_id(role_id)

    await AdminMutationGuard(db).enforce_role_deletion(role)
    deleted = await registry.delete_role(role_id)

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.ROLE_DELETED,
        entity_type=AuditEntity.ROLE,
        entity_id=role_id,
        metadata={"name": deleted.name}
    )

    return {"message": f"Role '{deleted.name}' deleted", "role_id": role_id}


# Catalogues

@router.get("/permissions", response_model=List[PermissionInfo])
async def list_permissions(admin: AdminContext = Depends(require_admin)):
    """The fixed permission vocabulary."""
    return [
        PermissionInfo(key=permission.value, label=PERMISSION_LABELS[permission])
        for permission in Permission
    ]


@router.get("/available-pages", response_model=List[AvailablePage])
async def list_available_pages(admin: AdminContext = Depends(require_admin)):
    """Pages that can be granted to a role."""
    return [
        AvailablePage(path=page.path, label=page.label, description=page.description)
        for page in AVAILABLE_PAGES
    ]


# Users

@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users in the system (admin-only).

    Returns paginated user list with assigned roles and status.
    """
    users, total = await user_service.list_users(db, page, page_size)
    roles = await user_service.role_names_by_user(db, [user.id for user in users])

    return UserListResponse(
        users=[_user_item(user, roles[user.id]) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("/users", response_model=UserListItem, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.create_user(
        db,
        email=payload.email,
        password=payload.password,
        display_name=payload.display_name,
        role_names=payload.roles,
        is_active=payload.is_active,
    )
    roles = await user_service.list_role_names_for_user(db, user.id)

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.USER_CREATED,
        entity_type=AuditEntity.USER,
        entity_id=user.id,
        metadata={"email": user.email, "roles": roles}
    )

    return _user_item(user, roles)


@router.get("/users/{user_id}", response_model=UserListItem)
async def get_user(
    user_id: int,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get detailed information about a specific user (admin-only).
    """
    user = await user_service.get_user(db, user_id)
    return _user_item(user, await user_service.list_role_names_for_user(db, user.id))


@router.patch("/users/{user_id}", response_model=UserListItem)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update account fields.

    Deactivating the built-in administrator, or the last active
    administrator, is rejected.
    """
    user = await user_service.get_user(db, user_id)
    await AdminMutationGuard(db).enforce_user_update(user, email=payload.email, is_active=payload.is_active)

    user = await user_service.update_user(
        db,
        user,
        email=payload.email,
        display_name=payload.display_name,
        is_active=payload.is_active,
        password=payload.password,
    )

    changes = payload.model_dump(exclude_unset=True, exclude={"password"})
    if payload.password is not None:
        changes["password_changed"] = True

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.USER_UPDATED,
        entity_type=AuditEntity.USER,
        entity_id=user.id,
        metadata=changes
    )

    return _user_item(user, await user_service.list_role_names_for_user(db, user.id))


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, user_id)
    await AdminMutationGuard(db).enforce_user_deletion(user)

    email = user.email
    await user_service.delete_user(db, user)

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.USER_DELETED,
        entity_type=AuditEntity.USER,
        entity_id=user_id,
        metadata={"email": email}
    )

    return {"message": f"User '{email}' deleted", "user_id": user_id}


@router.put("/users/{user_id}/roles", response_model=UserListItem)
async def set_user_roles(
    user_id: int,
    payload: UserRolesUpdate,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Replace the user's role assignments. The first role becomes the primary role.

    The user's current session keeps its old claims until refresh.
    """
    user = await user_service.get_user(db, user_id)
    old_roles = await user_service.list_role_names_for_user(db, user.id)

    await AdminMutationGuard(db).enforce_role_assignment(user, payload.roles)
    roles = await user_service.set_user_roles(db, user, payload.roles)

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.USER_ROLES_CHANGED,
        entity_type=AuditEntity.USER,
        entity_id=user.id,
        metadata={"old": old_roles, "new": roles}
    )

    return _user_item(user, roles)


@router.get("/users/{user_id}/permissions", response_model=EffectivePermissionsResponse)
async def get_user_permissions(
    user_id: int,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Claims the user would receive on their next login."""
    user = await user_service.get_user(db, user_id)
    claims = await ClaimsResolver(db).resolve_for_user(user)
    token_claims = claims.to_token_claims()

    return EffectivePermissionsResponse(
        user_id=user.id,
        roles=await user_service.list_role_names_for_user(db, user.id),
        role=claims.role,
        permissions=token_claims["permissions"],
        allowed_pages=token_claims["allowedPages"],
        default_landing_page=claims.default_landing_page,
    )


@router.get("/users/{user_id}/preferences", response_model=PreferencesResponse)
async def get_user_preferences(
    user_id: int,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, user_id)
    preference = await user_service.find_preference(db, user.id)
    if preference is None:
        return PreferencesResponse(user_id=user.id)
    return PreferencesResponse.model_validate(preference)


@router.put("/users/{user_id}/preferences", response_model=PreferencesResponse)
async def update_user_preferences(
    user_id: int,
    payload: PreferencesPayload,
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Set preferences; default_landing_page overrides the role's landing page at next login."""
    user = await user_service.get_user(db, user_id)
    values: Dict = payload.model_dump(exclude_unset=True)
    preference = await update_preferences(db, user, values)

    await log_admin_action(
        db=db,
        admin_id=admin.user.id,
        admin_email=admin.user.email,
        action=AuditAction.PREFERENCES_UPDATED,
        entity_type=AuditEntity.USER,
        entity_id=user.id,
        metadata=values
    )

    return PreferencesResponse.model_validate(preference)


# Audit

@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    entity_type: Optional[str] = Query(None, description="ROLE or USER"),
    entity_id: Optional[str] = Query(None, description="Filter by entity id"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail (admin-only).

    Returns audit logs filtered by entity and action.
    """
    logs = await get_audit_trail(
        db=db,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
