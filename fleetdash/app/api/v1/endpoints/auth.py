"""
Authentication API endpoints.

Login resolves the user's claims once and embeds them in the signed session
token. The token is returned in the body and set as an HttpOnly cookie so
that page navigations carry it too.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetdash.app.db.session import get_db
from fleetdash.app.models.user import User
from fleetdash.app.schemas.auth import LoginRequest, TokenResponse, SessionResponse
from fleetdash.app.core.config import settings
from fleetdash.app.core.exceptions import AuthenticationError, AuthorizationError
from fleetdash.app.core.security import verify_password
from fleetdash.app.core.session import SessionPrincipal, issue_session_token
from fleetdash.app.core.dependencies import get_current_session
from fleetdash.app.services.audit import log_auth_event, AuditAction
from fleetdash.app.services.claims import AuthorizationClaims
from fleetdash.app.services.claims_resolver import ClaimsResolver
from fleetdash.app.services.users import find_user_by_email

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


def _set_session_cookie(response: Response, token: str):
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def _token_response(token: str, user: User, claims: AuthorizationClaims) -> TokenResponse:
    token_claims = claims.to_token_claims()
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=claims.role,
        permissions=token_claims["permissions"],
        allowed_pages=token_claims["allowedPages"],
        default_landing_page=claims.default_landing_page,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return the session token.

    Logs successful and failed login attempts for security monitoring.
    """
    ip_address = _client_ip(request)
    user = await find_user_by_email(db, credentials.email)

    if not user:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=None,
            email=credentials.email,
            ip_address=ip_address,
            metadata={"reason": "User not found"}
        )
        raise AuthenticationError("Invalid credentials")

    if not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            email=user.email,
            ip_address=ip_address,
            metadata={"reason": "Invalid password"}
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            email=user.email,
            ip_address=ip_address,
            metadata={"reason": "Account is inactive"}
        )
        raise AuthorizationError("Inactive user account")

    claims = await ClaimsResolver(db).resolve_for_user(user)
    token = issue_session_token(user.id, user.email, user.display_name, claims)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        email=user.email,
        ip_address=ip_address,
        metadata={"role": claims.role}
    )

    _set_session_cookie(response, token)
    return _token_response(token, user, claims)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: Request,
    response: Response,
    session: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """
    Re-resolve claims from the current role state and issue a new token.

    This is the only way an existing session picks up role edits.
    """
    result = await db.execute(select(User).where(User.id == session.identity_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise AuthenticationError("Could not validate credentials")

    claims = await ClaimsResolver(db).resolve_for_user(user)
    token = issue_session_token(user.id, user.email, user.display_name, claims)

    await log_auth_event(
        db=db,
        action=AuditAction.SESSION_REFRESHED,
        user_id=user.id,
        email=user.email,
        ip_address=_client_ip(request),
        metadata={"previous_role": session.claims.role, "role": claims.role}
    )

    _set_session_cookie(response, token)
    return _token_response(token, user, claims)


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie. Issued tokens stay valid until they expire."""
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Logged out"}


@router.get("/me", response_model=SessionResponse)
async def get_session_info(session: SessionPrincipal = Depends(get_current_session)):
    """
    Get the claims of the current session token.

    Returns what the token carries, which may lag behind role edits made
    after it was issued.
    """
    token_claims = session.claims.to_token_claims()
    return SessionResponse(
        user_id=session.identity_id,
        email=session.email,
        display_name=session.display_name,
        role=session.claims.role,
        permissions=token_claims["permissions"],
        allowed_pages=token_claims["allowedPages"],
        default_landing_page=session.claims.default_landing_page,
    )
