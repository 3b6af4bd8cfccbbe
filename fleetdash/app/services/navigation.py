"""
Navigation filtering.

Applies the path matcher to the static dashboard menu to produce the menu a
given identity actually sees.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from fleetdash.app.core.permissions import AVAILABLE_PAGE_PATHS
from fleetdash.app.services.path_matcher import PREFIX_MIN_SEGMENTS, is_allowed, normalize_path, segment_count


@dataclass(frozen=True)
class MenuItem:
    """A navigable entry; ``children`` are filtered independently of the parent."""
    title: str
    href: str
    icon: Optional[str] = None
    children: Tuple["MenuItem", ...] = field(default_factory=tuple)


DASHBOARD_MENU: Tuple[MenuItem, ...] = (
    MenuItem("Domů", "/homepage", "home"),
    MenuItem("Vozidla", "/dashboard/auta", "car", children=(
        MenuItem("Aktivní vozidla", "/dashboard/auta", "car"),
        MenuItem("Mapa vozidel", "/dashboard/auta/mapa", "map"),
        MenuItem("Servis", "/dashboard/auta/servis", "wrench"),
        MenuItem("STK", "/dashboard/auta/stk", "clipboard-check"),
        MenuItem("Archiv", "/dashboard/auta/archiv", "archive"),
    )),
    MenuItem("Opravy", "/dashboard/opravy", "hammer"),
    MenuItem("Transakce", "/dashboard/transakce", "receipt"),
    MenuItem("Grafy", "/dashboard/grafy", "bar-chart"),
    MenuItem("Noviny", "/dashboard/noviny", "newspaper"),
    MenuItem("Trasa řidiče", "/dashboard/noviny/distribuce/driver-route", "route"),
    MenuItem("Soubory", "/dashboard/soubory", "folder"),
    MenuItem("Správa uživatelů", "/dashboard/admin/users", "users"),
    MenuItem("Nastavení systému", "/dashboard/admin/settings", "settings"),
    MenuItem("Nastavení", "/dashboard/settings", "sliders"),
)


def is_known_page(path: str) -> bool:
    """
    True for a catalogued page or a sub-route of one (``/dashboard/auta/42``).

    Only catalogued pages with at least two segments own sub-routes, the same
    rule the path matcher applies to allowed-page patterns.
    """
    normalized = normalize_path(path)
    if normalized in AVAILABLE_PAGE_PATHS:
        return True
    return any(
        normalized.startswith(known + "/")
        for known in AVAILABLE_PAGE_PATHS
        if segment_count(known) >= PREFIX_MIN_SEGMENTS
    )
