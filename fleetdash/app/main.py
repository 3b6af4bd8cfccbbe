"""
FastAPI Application Entry Point.

This is the main application file for the Fleet Dashboard access service.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fleetdash.app.core.config import settings
from fleetdash.app.core.logging_config import setup_logger
from fleetdash.app.api.v1.router import router as api_v1_router
from fleetdash.app.api.pages import router as pages_router
from fleetdash.app.core.observability import ObservabilityMiddleware
from fleetdash.app.core.route_guard import RouteGuardMiddleware
from fleetdash.app.db.session import engine, Base
from fleetdash.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleetdash.app.models.user import User  # noqa: F401
from fleetdash.app.models.role import Role, RolePermission  # noqa: F401
from fleetdash.app.models.user_role_assignment import UserRoleAssignment  # noqa: F401
from fleetdash.app.models.user_preference import UserPreference  # noqa: F401
from fleetdash.app.models.audit_log import AuditLog  # noqa: F401

logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup. Default roles and the built-in
    administrator are created by ``python -m fleetdash.seed_users``.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Role-based access and navigation authorization for the fleet dashboard",
    lifespan=lifespan,
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Last added runs first: correlation ids wrap the route guard's redirects
app.add_middleware(RouteGuardMiddleware)
app.add_middleware(ObservabilityMiddleware)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")

# Page shells go last: the catch-all page route must not shadow the API
app.include_router(pages_router)
