"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting API routes with the
session token. They read the token only; authority that must be current
(administrative mutations) is re-derived from the database in core.guards.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from fleetdash.app.core.exceptions import AuthenticationError
from fleetdash.app.core.session import SessionPrincipal, extract_token, read_session_token

# HTTP Bearer security scheme; the session cookie is accepted as well
security = HTTPBearer(auto_error=False)


async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[SessionPrincipal]:
    """Session principal if the request carries a valid token, otherwise None."""
    token = credentials.credentials if credentials else extract_token(request)
    return read_session_token(token)


async def get_current_session(
    session: Optional[SessionPrincipal] = Depends(get_optional_session)
) -> SessionPrincipal:
    """
    FastAPI dependency for session authentication.

    Returns:
        SessionPrincipal decoded from the token

    Raises:
        AuthenticationError: 401 if the token is missing, invalid or expired
    """
    if session is None:
        raise AuthenticationError("Could not validate credentials")
    return session
