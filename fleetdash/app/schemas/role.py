"""
Role management schemas.

Permission keys are accepted as plain strings so that unknown keys reach the
registry validation and are reported together, instead of failing request
parsing one at a time.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_]+$", description="Unique role key")
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list, description="Permission keys")
    allowed_pages: List[str] = Field(default_factory=list, description="Page patterns, '*' for all")
    default_landing_page: Optional[str] = Field(None, description="Defaults to the first allowed page")
    is_active: bool = True
    priority: int = 0


class RoleUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""
    name: Optional[str] = Field(None, min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None
    allowed_pages: Optional[List[str]] = None
    default_landing_page: Optional[str] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None


class RoleResponse(BaseModel):
    id: int
    name: str
    display_name: str
    description: Optional[str] = None
    permissions: List[str]
    allowed_pages: List[str]
    default_landing_page: Optional[str] = None
    is_active: bool
    is_system: bool
    priority: int
    user_count: int = 0
    created_at: datetime
    updated_at: datetime


class PermissionInfo(BaseModel):
    key: str
    label: str


class AvailablePage(BaseModel):
    path: str
    label: str
    description: str
