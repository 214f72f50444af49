import os
from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import portal.models  # noqa: F401
from portal.db.base import Base
from portal.db.session import get_db
from portal.main import app

from factories import auth_headers


def _test_database_url(tmp_path) -> str:
    return os.getenv(
        "TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}"
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator:
    url = _test_database_url(tmp_path)
    engine = create_async_engine(url, echo=False, poolclass=NullPool)
    if url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def api_client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client for the real app; every request gets its own database session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth_headers("user@example.com", name="Regular User")


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers("admin@example.com", name="Admin User", is_admin=True)
