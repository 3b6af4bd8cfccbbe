"""
Allowed-page matching.

Decides whether a requested destination is covered by a list of
allowed-page patterns. Pure functions, no I/O.

Matching rules:
    - ``*`` anywhere in the list allows every path
    - a pattern matches its own path exactly
    - a pattern with at least two non-empty segments (``/dashboard/auta``)
      also covers its sub-routes (``/dashboard/auta/42``); a single-segment
      pattern (``/dashboard``) never acts as a prefix

Entry pages (``/``, the login page, the forbidden page) are what the route
guard redirects from and to; they are never valid landing pages.
"""

from typing import Iterable, Optional

from fleetdash.app.core.config import settings
from fleetdash.app.core.permissions import WILDCARD_PAGE

PREFIX_MIN_SEGMENTS = 2
ROOT_PAGE = "/"


def normalize_path(path: str) -> str:
    """Strip the query string and one trailing slash. The root path is kept as-is."""
    without_query = path.split("?", 1)[0]
    if len(without_query) > 1 and without_query.endswith("/"):
        return without_query[:-1]
    return without_query


def segment_count(path: str) -> int:
    return len([segment for segment in path.split("/") if segment])


def pattern_matches(requested_path: str, pattern: str) -> bool:
    """Check a single normalized path against a single pattern."""
    allowed = normalize_path(pattern)

    if requested_path == allowed:
        return True

    return (
        segment_count(allowed) >= PREFIX_MIN_SEGMENTS
        and requested_path.startswith(allowed + "/")
    )


def is_allowed(requested_path: str, allowed_pages: Optional[Iterable[str]]) -> bool:
    """
    Return True when ``requested_path`` is covered by ``allowed_pages``.

    Args:
        requested_path: Path as requested, may carry a query string
        allowed_pages: Patterns from the session claims; None or empty denies

    Returns:
        True if any pattern covers the path
    """
    if not allowed_pages:
        return False

    patterns = list(allowed_pages)
    if WILDCARD_PAGE in patterns:
        return True

    normalized = normalize_path(requested_path)
    return any(pattern_matches(normalized, pattern) for pattern in patterns)


def is_public_page(path: str) -> bool:
    return normalize_path(path) in (ROOT_PAGE, settings.public_entry_page)


def is_forbidden_page(path: str) -> bool:
    return normalize_path(path) == settings.forbidden_page


def is_entry_page(path: str) -> bool:
    """Pages the route guard redirects from or to; never valid as a landing page."""
    return is_public_page(path) or is_forbidden_page(path)
