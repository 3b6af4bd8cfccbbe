"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class LoginRequest(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    """
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class TokenResponse(BaseModel):
    """
    Schema for session token response.

    Returned by login and refresh. The claims fields mirror what is embedded
    in the token.
    """
    access_token: str = Field(..., description="Signed session token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    display_name: Optional[str] = Field(default=None, description="Display name")
    role: Optional[str] = Field(default=None, description="Primary role, null when no role resolves")
    permissions: List[str] = Field(default_factory=list, description="Permission keys")
    allowed_pages: List[str] = Field(default_factory=list, description="Allowed page patterns")
    default_landing_page: str = Field(..., description="Where to send the user after login")


class SessionResponse(BaseModel):
    """
    Schema for the current session.

    Used by GET /auth/me. Reflects the token, not the current database state.
    """
    user_id: int
    email: str
    display_name: Optional[str] = None
    role: Optional[str] = None
    permissions: List[str]
    allowed_pages: List[str]
    default_landing_page: str
