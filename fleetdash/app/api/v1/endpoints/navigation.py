"""
Navigation API endpoints.

Answers from the session token only: the menu and access checks reflect
the claims issued at login, not later role edits.
"""

from typing import List, Sequence

from fastapi import APIRouter, Depends, Query

from fleetdash.app.core.dependencies import get_current_session
from fleetdash.app.core.session import SessionPrincipal
from fleetdash.app.schemas.navigation import MenuItemResponse, MenuResponse, NavigationCheckResponse
from fleetdash.app.services.navigation import DASHBOARD_MENU, MenuItem, filter_menu_tree
from fleetdash.app.services.path_matcher import is_allowed

router = APIRouter(prefix="/navigation", tags=["Navigation"])


def menu_items_response(items: Sequence[MenuItem]) -> List[MenuItemResponse]:
    return [
        MenuItemResponse(
            title=item.title,
            href=item.href,
            icon=item.icon,
            children=menu_items_response(item.children),
        )
        for item in items
    ]


@router.get("/menu", response_model=MenuResponse)
async def get_menu(session: SessionPrincipal = Depends(get_current_session)):
    """Dashboard menu filtered by the session's allowed pages."""
    visible = filter_menu_tree(DASHBOARD_MENU, session.claims.allowed_pages)
    return MenuResponse(role=session.claims.role, items=menu_items_response(visible))


@router.get("/check", response_model=NavigationCheckResponse)
async def check_path(
    path: str = Query(..., min_length=1, description="Page path to check"),
    session: SessionPrincipal = Depends(get_current_session)
):
    return NavigationCheckResponse(path=path, allowed=is_allowed(path, session.claims.allowed_pages))
