"""Pytest fixtures for the service and API test suites.

Integration tests target ``TEST_DATABASE_URL`` when it is configured (with the
``PYTEST_ALLOW_DB=1`` opt-in). Otherwise they run against a throwaway SQLite
file per test.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from dotenv import load_dotenv

load_dotenv()

# Settings are read at import time; give them a harmless target when unset.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./scorekeeper-test.db")

from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel  # noqa: E402

from scorekeeper.utils.db_async import load_schema_modules  # noqa: E402


def _load_database_url(tmp_path) -> str:
    """Resolve the database URL for tests, enforcing an explicit opt-in for real databases."""
    test_db_url = os.getenv("TEST_DATABASE_URL")
    if not test_db_url:
        return f"sqlite+aiosqlite:///{tmp_path / 'scorekeeper.db'}"
    pytest_allow_db = int(os.getenv("PYTEST_ALLOW_DB", "0"))
    if pytest_allow_db != 1:
        raise RuntimeError(
            "Running integration tests requires setting PYTEST_ALLOW_DB=1 to"
            " confirm the configured database is safe to mutate."
        )
    return test_db_url


@pytest.fixture()
def database_url(tmp_path) -> str:
    return _load_database_url(tmp_path)


@pytest_asyncio.fixture()
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Yield an async engine with a freshly created schema."""
    # Ensure SQLModel metadata is populated before creating tables.
    load_schema_modules()

    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture()
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session outside any transaction.

    Services open their own ``db.begin()`` block, so seeding and assertions
    in tests wrap their queries in ``async with db_session.begin():`` too.
    """
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def app_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an HTTP client with the application wired to the test database."""
    from scorekeeper.main import app
    from scorekeeper.routes.helpers import ACTING_USER_HEADER
    from scorekeeper.utils.db_async import get_session

    async def _get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(
            transport=transport,
            base_url="http://test",
            headers={ACTING_USER_HEADER: "user-admin"},
        ) as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_session, None)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Ensure HTTPX uses asyncio backend during tests."""
    return "asyncio"
