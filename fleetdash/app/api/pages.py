"""
Dashboard page shells.

Each page answers with its path and the menu visible to the session. Access
has already been decided by RouteGuardMiddleware by the time these run.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from fleetdash.app.api.v1.endpoints.navigation import menu_items_response
from fleetdash.app.core.config import settings
from fleetdash.app.core.dependencies import get_optional_session
from fleetdash.app.core.exceptions import NotFoundError
from fleetdash.app.core.session import SessionPrincipal
from fleetdash.app.schemas.navigation import PageShellResponse
from fleetdash.app.services.navigation import DASHBOARD_MENU, filter_menu_tree, is_known_page

router = APIRouter(tags=["Pages"])


def page_shell(path: str, session: Optional[SessionPrincipal]) -> PageShellResponse:
    if session is None:
        return PageShellResponse(path=path, authenticated=False, menu=[])

    visible = filter_menu_tree(DASHBOARD_MENU, session.claims.allowed_pages)
    return PageShellResponse(
        path=path,
        authenticated=True,
        role=session.claims.role,
        default_landing_page=session.claims.default_landing_page,
        menu=menu_items_response(visible),
    )


@router.get("/", response_model=PageShellResponse)
async def root_page(session: Optional[SessionPrincipal] = Depends(get_optional_session)):
    return page_shell("/", session)


@router.get(settings.public_entry_page, response_model=PageShellResponse)
async def login_page(session: Optional[SessionPrincipal] = Depends(get_optional_session)):
    return page_shell(settings.public_entry_page, session)


@router.get(settings.forbidden_page, response_model=PageShellResponse)
async def forbidden_page(session: Optional[SessionPrincipal] = Depends(get_optional_session)):
    """Shown after the route guard rejects a navigation."""
    return page_shell(settings.forbidden_page, session)


@router.get("/{page_path:path}", response_model=PageShellResponse)
async def dashboard_page(page_path: str, session: Optional[SessionPrincipal] = Depends(get_optional_session)):
    path = "/" + page_path
    if not is_known_page(path):
        raise NotFoundError("Page", path)
    return page_shell(path, session)
