"""
Compiled access-control constants.

Single source of truth for the permission vocabulary, the administrator
bypass and the catalogue of navigable pages. Read by the claims resolver,
the role registry validation path and the seed script. Nothing here is
mutated at runtime.
"""

from typing import Iterable, List, NamedTuple, Tuple

from fleetdash.app.models.enums import Permission

ADMIN_ROLE_NAME = "ADMIN"
WILDCARD_PAGE = "*"
DEFAULT_LANDING_PAGE = "/homepage"

ALL_PERMISSIONS = frozenset(Permission)

PERMISSION_LABELS = {
    Permission.VIEW_DASHBOARD: "Zobrazit dashboard",
    Permission.MANAGE_USERS: "Spravovat uživatele",
    Permission.MANAGE_VEHICLES: "Spravovat vozidla",
    Permission.VIEW_REPORTS: "Zobrazit reporty",
    Permission.MANAGE_DISTRIBUTION: "Spravovat distribuci novin",
    Permission.DRIVER_ACCESS: "Přístup pro řidiče",
    Permission.MANAGE_ROLES: "Spravovat role",
}


class PageInfo(NamedTuple):
    path: str
    label: str
    description: str


AVAILABLE_PAGES: Tuple[PageInfo, ...] = (
    PageInfo("/welcome", "Uvítací stránka", "Vítejte v systému"),
    PageInfo("/homepage", "Homepage", "Hlavní přehled"),
    PageInfo("/dashboard", "Dashboard", "Klasický dashboard"),
    PageInfo("/dashboard/auta", "Vozidla", "Správa vozidel"),
    PageInfo("/dashboard/auta/mapa", "Mapa vozidel", "GPS mapa vozidel"),
    PageInfo("/dashboard/auta/archiv", "Archiv vozidel", "Archivovaná vozidla"),
    PageInfo("/dashboard/auta/stk", "STK", "Kontroly STK"),
    PageInfo("/dashboard/auta/servis", "Servis", "Servisní záznamy"),
    PageInfo("/dashboard/opravy", "Opravy", "Správa oprav"),
    PageInfo("/dashboard/grafy", "Grafy", "Analytika a grafy"),
    PageInfo("/dashboard/transakce", "Transakce", "Finanční transakce"),
    PageInfo("/dashboard/noviny", "Noviny", "Distribuce novin"),
    PageInfo("/dashboard/noviny/distribuce/driver-login", "Přihlášení řidiče", "Přihlášení pro řidiče"),
    PageInfo("/dashboard/noviny/distribuce/driver-route", "Trasa řidiče", "Správa tras řidiče"),
    PageInfo("/dashboard/noviny/distribuce/driver-restricted", "Omezený přístup řidiče", "Omezený přístup"),
    PageInfo("/dashboard/admin/users", "Správa uživatelů", "Uživatelé a role"),
    PageInfo("/dashboard/admin/settings", "Nastavení systému", "Systémová nastavení"),
    PageInfo("/dashboard/settings", "Nastavení", "Uživatelská nastavení"),
    PageInfo("/dashboard/account", "Účet", "Správa účtu"),
    PageInfo("/dashboard/soubory", "Soubory", "Správa souborů"),
)

AVAILABLE_PAGE_PATHS = frozenset(page.path for page in AVAILABLE_PAGES)

# Hard-coded administrator grant. The stored ADMIN row is never consulted.
ADMIN_ALLOWED_PAGES: Tuple[str, ...] = (WILDCARD_PAGE,) + tuple(page.path for page in AVAILABLE_PAGES)
ADMIN_LANDING_PAGE = DEFAULT_LANDING_PAGE


class RoleDefaults(NamedTuple):
    name: str
    display_name: str
    description: str
    permissions: Tuple[Permission, ...]
    allowed_pages: Tuple[str, ...]
    default_landing_page: str
    is_system: bool = False
    priority: int = 0


DEFAULT_ROLES: Tuple[RoleDefaults, ...] = (
    RoleDefaults(
        name=ADMIN_ROLE_NAME,
        display_name="Administrátor",
        description="Plný přístup ke všem částem systému",
        permissions=tuple(Permission),
        allowed_pages=(WILDCARD_PAGE,),
        default_landing_page=ADMIN_LANDING_PAGE,
        is_system=True,
        priority=100,
    ),
    RoleDefaults(
        name="DISPECER",
        display_name="Dispečer",
        description="Správa vozového parku",
        permissions=(Permission.MANAGE_VEHICLES,),
        allowed_pages=("/dashboard/auta",),
        default_landing_page="/dashboard/auta",
        priority=50,
    ),
    RoleDefaults(
        name="MANAGER",
        display_name="Manažer",
        description="Reporty a plánování distribuce",
        permissions=(Permission.VIEW_DASHBOARD, Permission.VIEW_REPORTS, Permission.MANAGE_DISTRIBUTION),
        allowed_pages=("/homepage", "/dashboard/auta", "/dashboard/grafy", "/dashboard/noviny"),
        default_landing_page="/homepage",
        priority=40,
    ),
    RoleDefaults(
        name="RIDIC",
        display_name="Řidič",
        description="Trasa řidiče distribuce novin",
        permissions=(Permission.DRIVER_ACCESS,),
        allowed_pages=("/dashboard/noviny/distribuce/driver-route", "/homepage"),
        default_landing_page="/dashboard/noviny/distribuce/driver-route",
        priority=10,
    ),
    RoleDefaults(
        name="USER",
        display_name="Uživatel",
        description="Náhled na vozidla",
        permissions=(Permission.VIEW_DASHBOARD,),
        allowed_pages=("/dashboard/auta", "/homepage"),
        default_landing_page="/dashboard/auta",
        priority=0,
    ),
)


def is_admin_role(role_name: str) -> bool:
    return role_name == ADMIN_ROLE_NAME


def invalid_permission_keys(keys: Iterable[str]) -> List[str]:
    """Return the submitted keys that are not part of the permission vocabulary."""
    valid = {permission.value for permission in ALL_PERMISSIONS}
    return [key for key in keys if key not in valid]


def to_permissions(keys: Iterable[str]) -> List[Permission]:
    """
    Convert wire keys to Permission members, dropping duplicates but keeping order.

    Callers validate first with ``invalid_permission_keys``.
    """
    ordered: List[Permission] = []
    for key in keys:
        permission = Permission(key)
        if permission not in ordered:
            ordered.append(permission)
    return ordered
