"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from fleetdash.app.main import app
from fleetdash.app.db.session import get_db, Base
from fleetdash.app.core.config import settings
from fleetdash.app.services.seed import seed_defaults
from fleetdash.app.services.users import create_user

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    """Fresh sessions for reading state back after API calls."""
    return TestingSessionLocal


@pytest.fixture
async def seeded(db_session):
    """Default roles plus the protected administrator."""
    return await seed_defaults(db_session)


@pytest.fixture
def make_user(db_session):
    async def _make_user(email, roles=(), password=DEFAULT_PASSWORD, is_active=True, display_name=None):
        return await create_user(
            db_session,
            email=email,
            password=password,
            display_name=display_name,
            role_names=list(roles),
            is_active=is_active,
        )
    return _make_user


@pytest.fixture
def login(client):
    """Log in through the API and return the Authorization header."""
    async def _login(email, password=DEFAULT_PASSWORD):
        response = await client.post("/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login


@pytest.fixture
async def admin_headers(seeded, login):
    return await login(settings.protected_admin_email, settings.protected_admin_password)
