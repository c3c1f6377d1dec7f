# tests/conftest.py — Shared test fixtures
import os
import uuid
import tempfile

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="taskboard-uploads-")
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("API_KEY", None)

from models import Base, User
from auth import AuthService, make_initials
from database import get_db_session, enable_sqlite_foreign_keys
from main import app
from taskboard_client.api import TaskboardAPI

TEST_PASSWORD = "TestPassword123"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine):
    """HTTP test client with overridden DB dependency"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(db_session, email: str, name: str, password: str = TEST_PASSWORD) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        initials=make_initials(name),
        password_hash=AuthService.hash_password(password),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    """Create a test user"""
    return await make_user(db_session, "testuser@taskboard.dev", "Test User")


@pytest_asyncio.fixture
async def other_user(db_session):
    """A second user with no access to test_user's boards"""
    return await make_user(db_session, "other@taskboard.dev", "Other Person")


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    token = AuthService.create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


def api_for(client: AsyncClient, user: User) -> TaskboardAPI:
    """Typed client sharing the test transport, signed in as ``user``"""
    token = get_auth_headers(user)["Authorization"].split(" ", 1)[1]
    return TaskboardAPI(client=client, token=token)


async def create_board(client: AsyncClient, user: User, title: str = "Roadmap") -> dict:
    res = await client.post("/api/v1/boards", json={"title": title}, headers=get_auth_headers(user))
    assert res.status_code == 201
    return res.json()


async def board_columns(client: AsyncClient, user: User, board_id: str) -> list:
    res = await client.get(f"/api/v1/boards/{board_id}/columns", headers=get_auth_headers(user))
    assert res.status_code == 200
    return res.json()


async def create_task(client: AsyncClient, user: User, column_id: str, title: str, **extra) -> dict:
    res = await client.post(
        "/api/v1/tasks", json={"columnId": column_id, "title": title, **extra}, headers=get_auth_headers(user),
    )
    assert res.status_code == 201, res.text
    return res.json()
