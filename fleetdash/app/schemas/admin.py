"""
Admin API Schema Definitions.

Pydantic schemas for user management, preferences and the audit trail.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List


class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    display_name: Optional[str] = Field(None, max_length=100)
    roles: List[str] = Field(default_factory=list, description="Role names in priority order")
    is_active: bool = True


class UserUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, min_length=6)
    is_active: Optional[bool] = None


class UserRolesUpdate(BaseModel):
    """Replaces every assignment. The first role is the primary role."""
    roles: List[str] = Field(..., description="Role names in priority order")


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: int
    email: str
    display_name: Optional[str] = None
    roles: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    total: int
    page: int
    page_size: int


class EffectivePermissionsResponse(BaseModel):
    """Claims the user would receive if they logged in now."""
    user_id: int
    roles: List[str]
    role: Optional[str] = None
    permissions: List[str]
    allowed_pages: List[str]
    default_landing_page: str


class PreferencesPayload(BaseModel):
    """Partial update; an explicit null landing page clears the override."""
    default_landing_page: Optional[str] = None
    theme: Optional[str] = Field(None, pattern="^(light|dark|system)$")
    language: Optional[str] = Field(None, max_length=10)
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    compact_mode: Optional[bool] = None
    show_avatars: Optional[bool] = None
    auto_refresh: Optional[bool] = None


class PreferencesResponse(BaseModel):
    user_id: int
    default_landing_page: Optional[str] = None
    theme: str = "system"
    language: str = "cs"
    email_notifications: bool = True
    push_notifications: bool = True
    sms_notifications: bool = False
    compact_mode: bool = False
    show_avatars: bool = True
    auto_refresh: bool = True

    class Config:
        from_attributes = True


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_email: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[str]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
