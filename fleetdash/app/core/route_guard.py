"""
Route guard for dashboard page navigation.

Runs before every page request and decides, from the signed session token
alone, whether the request proceeds or is redirected. No database access:
the claims in the token are the only input.
"""

import enum
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from fleetdash.app.core.config import settings
from fleetdash.app.core.logging_config import get_logger
from fleetdash.app.core.permissions import DEFAULT_LANDING_PAGE
from fleetdash.app.core.session import extract_token, read_session_token
from fleetdash.app.services.claims import AuthorizationClaims
from fleetdash.app.services.path_matcher import (
    is_allowed,
    is_entry_page,
    is_forbidden_page,
    is_public_page,
    normalize_path,
)

logger = get_logger("route_guard")

# Served without a session and never redirected
PASSTHROUGH_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json")


class GuardOutcome(str, enum.Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    target: Optional[str] = None

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(GuardOutcome.ALLOW)

    @classmethod
    def redirect(cls, target: str) -> "GuardDecision":
        return cls(GuardOutcome.REDIRECT, target)

    @property
    def allowed(self) -> bool:
        return self.outcome == GuardOutcome.ALLOW


def login_redirect_target(path: str) -> str:
    return f"{settings.public_entry_page}?{urlencode({'callbackUrl': path})}"


def landing_target(claims: AuthorizationClaims) -> str:
    """Landing page of a session, never one of the entry pages it is redirected from."""
    landing = claims.default_landing_page
    if not landing or is_entry_page(landing):
        return DEFAULT_LANDING_PAGE
    return landing


def evaluate_navigation(path: str, claims: Optional[AuthorizationClaims]) -> GuardDecision:
    """
    Decide a page navigation.

    Args:
        path: Requested page path, query string allowed
        claims: Claims of the session, None when unauthenticated

    Returns:
        ALLOW, or REDIRECT with the target path
    """
    normalized = normalize_path(path)

    if claims is None:
        if is_public_page(normalized) or is_forbidden_page(normalized):
            return GuardDecision.allow()
        return GuardDecision.redirect(login_redirect_target(path))

    if is_public_page(normalized):
        return GuardDecision.redirect(landing_target(claims))

    if is_forbidden_page(normalized):
        return GuardDecision.allow()

    if not is_allowed(normalized, claims.allowed_pages):
        return GuardDecision.redirect(settings.forbidden_page)

    return GuardDecision.allow()


def is_guarded_request(path: str) -> bool:
    """API routes and service endpoints are protected by their own dependencies."""
    if path == f"/{settings.api_version}" or path.startswith(f"/{settings.api_version}/"):
        return False
    return not any(path == prefix or path.startswith(prefix + "/") for prefix in PASSTHROUGH_PREFIXES)


class RouteGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if request.method not in ("GET", "HEAD") or not is_guarded_request(path):
            return await call_next(request)

        principal = read_session_token(extract_token(request))
        claims = principal.claims if principal else None

        requested = path if not request.url.query else f"{path}?{request.url.query}"
        decision = evaluate_navigation(requested, claims)

        if decision.allowed:
            return await call_next(request)

        logger.info(
            "Redirecting %s -> %s (identity=%s)",
            path, decision.target, principal.identity_id if principal else None
        )
        return RedirectResponse(url=decision.target, status_code=307)
