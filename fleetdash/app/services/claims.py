"""
Authorization claims.

Two value types live here and are deliberately kept apart:

    RoleSnapshot         current state of one role as read from the registry
    AuthorizationClaims  what a session was granted when it was issued

Claims are computed once at login (or explicit refresh) and embedded in the
signed session token. Later edits to a role change its RoleSnapshot but
never the claims of sessions already issued.

Permissions and navigation grants are aggregated differently:
permissions are the union over every effective role
(aggregate_permissions), while allowed pages and the landing page come from
the primary role alone (primary_navigation_grant).
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from fleetdash.app.core.permissions import (
    ADMIN_ALLOWED_PAGES,
    ADMIN_LANDING_PAGE,
    ADMIN_ROLE_NAME,
    ALL_PERMISSIONS,
    DEFAULT_LANDING_PAGE,
    is_admin_role,
)
from fleetdash.app.models.enums import Permission
from fleetdash.app.services.path_matcher import is_allowed


@dataclass(frozen=True)
class RoleSnapshot:
    name: str
    permissions: Tuple[Permission, ...]
    allowed_pages: Tuple[str, ...]
    default_landing_page: Optional[str]
    is_active: bool = True


@dataclass(frozen=True)
class AuthorizationClaims:
    """Immutable claim set carried by a session token."""
    role: Optional[str]
    permissions: FrozenSet[Permission]
    allowed_pages: Tuple[str, ...]
    default_landing_page: str

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

    @property
    def is_empty(self) -> bool:
        return not self.permissions and not self.allowed_pages

    def to_token_claims(self) -> Dict[str, Any]:
        """Serialize to the session token field names."""
        return {
            "role": self.role,
            "permissions": sorted(permission.value for permission in self.permissions),
            "allowedPages": list(self.allowed_pages),
            "defaultLandingPage": self.default_landing_page,
        }


def claims_from_token(payload: Mapping[str, Any]) -> AuthorizationClaims:
    """
    Rebuild the claims snapshot embedded in a decoded session token.

    Unknown permission keys are dropped rather than trusted.
    """
    known = {permission.value for permission in ALL_PERMISSIONS}
    permissions = frozenset(
        Permission(key) for key in payload.get("permissions") or [] if key in known
    )
    return AuthorizationClaims(
        role=payload.get("role"),
        permissions=permissions,
        allowed_pages=tuple(payload.get("allowedPages") or ()),
        default_landing_page=payload.get("defaultLandingPage") or DEFAULT_LANDING_PAGE,
    )


def empty_claims() -> AuthorizationClaims:
    return AuthorizationClaims(
        role=None,
        permissions=frozenset(),
        allowed_pages=(),
        default_landing_page=DEFAULT_LANDING_PAGE,
    )


def administrator_claims(preferred_landing_page: Optional[str] = None) -> AuthorizationClaims:
    """Hard-coded administrator grant, independent of the stored ADMIN row."""
    return AuthorizationClaims(
        role=ADMIN_ROLE_NAME,
        permissions=ALL_PERMISSIONS,
        allowed_pages=ADMIN_ALLOWED_PAGES,
        default_landing_page=preferred_landing_page or ADMIN_LANDING_PAGE,
    )


def effective_roles(role_names: Sequence[str], roles: Mapping[str, RoleSnapshot]) -> List[RoleSnapshot]:
    """Assigned roles that exist and are active, in assignment order."""
    resolved = []
    for name in role_names:
        snapshot = roles.get(name)
        if snapshot is not None and snapshot.is_active:
            resolved.append(snapshot)
    return resolved


def aggregate_permissions(roles: Iterable[RoleSnapshot]) -> FrozenSet[Permission]:
    """Union of the permissions of every role."""
    granted = set()
    for role in roles:
        granted.update(role.permissions)
    return frozenset(granted)


def primary_navigation_grant(roles: Sequence[RoleSnapshot]) -> Tuple[Tuple[str, ...], str]:
    """
    Navigation grant of the primary role: (allowed_pages, default_landing_page).

    Only the first role counts; later roles never widen the page grant.
    """
    if not roles:
        return (), DEFAULT_LANDING_PAGE

    primary = roles[0]
    return tuple(primary.allowed_pages), primary.default_landing_page or DEFAULT_LANDING_PAGE


def covered_landing_page(preferred: Optional[str], allowed_pages: Sequence[str], fallback: str) -> str:
    """The preferred landing page when the grant covers it, otherwise ``fallback``."""
    if preferred and is_allowed(preferred, allowed_pages):
        return preferred
    return fallback


def resolve_claims(
    role_names: Sequence[str],
    roles: Mapping[str, RoleSnapshot],
    preferred_landing_page: Optional[str] = None,
) -> AuthorizationClaims:
    """
    Aggregate assigned roles into one claim set.

    Args:
        role_names: Assigned role names in assignment order
        roles: Current role snapshots by name; missing names are skipped
        preferred_landing_page: UserPreference override, if the user set one;
            ignored unless the primary grant covers it

    Returns:
        AuthorizationClaims to embed in the session token
    """
    if not role_names:
        return empty_claims()

    if any(is_admin_role(name) for name in role_names):
        return administrator_claims(
            covered_landing_page(preferred_landing_page, ADMIN_ALLOWED_PAGES, ADMIN_LANDING_PAGE)
        )

    active = effective_roles(role_names, roles)
    if not active:
        return empty_claims()

    allowed_pages, landing_page = primary_navigation_grant(active)

    return AuthorizationClaims(
        role=active[0].name,
        permissions=aggregate_permissions(active),
        allowed_pages=allowed_pages,
        default_landing_page=covered_landing_page(preferred_landing_page, allowed_pages, landing_page),
    )
