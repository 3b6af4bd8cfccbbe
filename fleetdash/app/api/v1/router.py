"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetdash.app.api.v1.endpoints import auth, admin, navigation, users

router = APIRouter()

# Include authentication endpoints
router.include_router(auth.router)

# Include admin endpoints
router.include_router(admin.router)

# Menu and access checks for the current session
router.include_router(navigation.router)

# Self-service preferences of the signed-in user
router.include_router(users.router)
