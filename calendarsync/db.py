from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from calendarsync.config import get_settings


def is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def engine_options(database_url: str) -> dict[str, Any]:
    """SQLite in-memory databases only exist per connection, so share one."""
    url = make_url(database_url)
    options: dict[str, Any] = {"echo": False, "future": True}
    if is_memory_sqlite(url):
        options["poolclass"] = StaticPool
    return options


def ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or is_memory_sqlite(url):
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


settings = get_settings()
engine: AsyncEngine = create_async_engine(settings.database_url, **engine_options(settings.database_url))
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """Create the events table on startup if it does not exist."""

    from calendarsync import models  # noqa: WPS433 - imported lazily to avoid circular deps

    ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session
