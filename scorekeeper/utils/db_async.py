"""Async SQLAlchemy engine and session helpers."""

from typing import Any, AsyncGenerator, Dict, Tuple

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from scorekeeper.config import settings

# Seconds a SQLite writer waits on a locked database before giving up
SQLITE_BUSY_TIMEOUT = 15

# libpq query options asyncpg does not understand
_LIBPQ_ONLY_OPTIONS = ("sslmode", "channel_binding")


def normalize_database_url(url: str) -> str:
    """Select an async driver for bare ``postgres``/``postgresql``/``sqlite`` URLs.

    URLs that already name a driver (``postgresql+psycopg``) are left alone.
    """
    u = make_url(url)
    driver = u.drivername.lower()
    if driver in ("postgres", "postgresql"):
        u = u.set(drivername="postgresql+asyncpg")
    elif driver == "sqlite":
        u = u.set(drivername="sqlite+aiosqlite")
    return u.render_as_string(hide_password=False)


def split_connect_args(url: str) -> Tuple[str, Dict[str, Any]]:
    """Return the engine URL and the driver ``connect_args`` for it."""
    u = make_url(normalize_database_url(url))
    connect_args: Dict[str, Any] = {}

    if u.drivername == "sqlite+aiosqlite":
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    elif u.drivername == "postgresql+asyncpg":
        # asyncpg takes the libpq sslmode names through its ``ssl`` argument
        sslmode = u.query.get("sslmode")
        if sslmode:
            connect_args["ssl"] = sslmode
        u = u.difference_update_query(_LIBPQ_ONLY_OPTIONS)

    return u.render_as_string(hide_password=False), connect_args


def load_schema_modules() -> None:
    """Import every table module so SQLModel metadata is fully populated."""
    from scorekeeper.schemas import fixtures  # noqa: F401
    from scorekeeper.schemas import leagues  # noqa: F401
    from scorekeeper.schemas import matches  # noqa: F401
    from scorekeeper.schemas import seasons  # noqa: F401
    from scorekeeper.schemas import teams  # noqa: F401


DATABASE_URL, CONNECT_ARGS = split_connect_args(settings.database_url)

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.sql_echo,
    pool_pre_ping=True,
    connect_args=CONNECT_ARGS,
)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with SessionLocal() as session:
        yield session

async def init_db():
    """Create any missing tables (dev only; migrations own the schema elsewhere)."""
    load_schema_modules()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

async def dispose_engine() -> None:
    await engine.dispose()

def describe_database_url(url: str) -> str:
    """Return ``driver://user@host:port/db`` for logging; never the password."""
    u = make_url(url)
    port = f":{u.port}" if u.port else ""
    return f"{u.drivername}://{u.username or '?'}@{u.host or '?'}{port}/{u.database or '?'}"
