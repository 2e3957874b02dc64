"""Pytest configuration and fixtures."""
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("LOG_FORMAT", "text")

from taskhub.main import app  # noqa: E402
from taskhub.database import AsyncSessionLocal, Base, engine, get_db  # noqa: E402
from taskhub.core.security import ROLE_PERMISSIONS  # noqa: E402
from taskhub.models.user import User  # noqa: E402
from taskhub.schemas.project import ProjectCreate  # noqa: E402
from taskhub.schemas.task import TaskCreate  # noqa: E402
from taskhub.services.auth_service import AuthService  # noqa: E402
from taskhub.services.bootstrap_service import ensure_roles  # noqa: E402
from taskhub.services.project_service import project_service  # noqa: E402
from taskhub.services.task_service import task_service  # noqa: E402
from taskhub.utils.security import create_access_token  # noqa: E402

TEST_PASSWORD = "testpassword"


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """Create a test database session on a fresh in-memory schema."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession):
    """HTTP client against the app with the database dependency overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def roles(db_session: AsyncSession):
    """Seed the built-in roles."""
    return await ensure_roles(db_session, role_names=ROLE_PERMISSIONS.keys())


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession, roles):
    """Factory creating an active user holding one role."""

    async def _make_user(username: str, role: str = "member") -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            password_hash=AuthService.hash_password(TEST_PASSWORD),
            full_name=username.title(),
            is_active=True,
        )
        user.roles = [roles[role]]
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def owner(make_user):
    return await make_user("owner")


@pytest_asyncio.fixture
async def outsider(make_user):
    return await make_user("outsider")


@pytest_asyncio.fixture
async def admin_user(make_user):
    return await make_user("admin", role="admin")


@pytest_asyncio.fixture
async def project(db_session: AsyncSession, owner: User):
    """Private project owned by ``owner``."""
    return await project_service.create_project(
        db_session,
        project_in=ProjectCreate(name="Website relaunch"),
        actor_id=owner.id,
    )


@pytest_asyncio.fixture
async def task(db_session: AsyncSession, project, owner: User):
    """Todo task in ``project``."""
    return await task_service.create_task(
        db_session,
        task_in=TaskCreate(title="Write copy", project_id=project.id),
        actor_id=owner.id,
    )


def _bearer(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build bearer headers for any user."""
    return _bearer


@pytest.fixture
def auth_headers(owner):
    """Get authentication headers for the project owner."""
    return _bearer(owner)
