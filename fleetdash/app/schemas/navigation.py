"""
Navigation schemas: filtered menu, page shells and access checks.
"""

from pydantic import BaseModel
from typing import List, Optional


class MenuItemResponse(BaseModel):
    title: str
    href: str
    icon: Optional[str] = None
    children: List["MenuItemResponse"] = []


class MenuResponse(BaseModel):
    role: Optional[str] = None
    items: List[MenuItemResponse]


class NavigationCheckResponse(BaseModel):
    path: str
    allowed: bool


class PageShellResponse(BaseModel):
    """What a page would render: the path and the menu visible to the session."""
    path: str
    authenticated: bool
    role: Optional[str] = None
    default_landing_page: Optional[str] = None
    menu: List[MenuItemResponse]
