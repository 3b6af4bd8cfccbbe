"""
Session token construction and parsing.

A session token is a signed, stateless JWT carrying the identity and the
claims snapshot resolved at login. There is no server-side session store.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from fleetdash.app.core.config import settings
from fleetdash.app.core.jwt import create_access_token, decode_access_token
from fleetdash.app.services.claims import AuthorizationClaims, claims_from_token


@dataclass(frozen=True)
class SessionPrincipal:
    """Identity and claims read back from a session token."""
    identity_id: int
    email: str
    display_name: Optional[str]
    claims: AuthorizationClaims


def issue_session_token(identity_id: int, email: str, display_name: Optional[str], claims: AuthorizationClaims) -> str:
    payload = {
        "sub": str(identity_id),
        "email": email,
        "name": display_name,
    }
    payload.update(claims.to_token_claims())
    return create_access_token(data=payload)


def read_session_token(token: Optional[str]) -> Optional[SessionPrincipal]:
    """Return the principal of a valid token, None for missing, invalid or expired tokens."""
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        identity_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None

    return SessionPrincipal(
        identity_id=identity_id,
        email=payload.get("email") or "",
        display_name=payload.get("name"),
        claims=claims_from_token(payload),
    )


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()

    return request.cookies.get(settings.session_cookie_name)
