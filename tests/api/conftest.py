"""
Test fixtures - in-memory SQLite database + HTTP clients bound to the API
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from farmlog.api.core.database import Base, get_db
from farmlog.api.core.security import create_access_token, get_password_hash
from farmlog.api.main import app
from farmlog.api.models.user import User
from farmlog.api.models.task import Task  # noqa: F401  (registers the table)


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture()
async def users(db_session):
    """Two registered users: alice/pw1 and bob/pw2"""
    alice = User(username="alice", hashed_password=get_password_hash("pw1"))
    bob = User(username="bob", hashed_password=get_password_hash("pw2"))

    db_session.add_all([alice, bob])
    await db_session.commit()
    await db_session.refresh(alice)
    await db_session.refresh(bob)

    return {"alice": alice, "bob": bob}


@pytest_asyncio.fixture()
async def unauth_client(db_session):
    """Unauthenticated httpx AsyncClient"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(unauth_client, users):
    """Client carrying alice's bearer token"""
    token = create_access_token(data={"sub": users["alice"].id})
    unauth_client.headers["Authorization"] = f"Bearer {token}"
    return unauth_client


@pytest_asyncio.fixture()
async def bob_headers(users):
    token = create_access_token(data={"sub": users["bob"].id})
    return {"Authorization": f"Bearer {token}"}
