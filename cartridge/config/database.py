"""
Database engine and session factories.

Builds the async SQLAlchemy engine backing the chunk store. SQLite gets
WAL journaling so API readers never block behind the indexer writer.
"""

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from cartridge.models.base import Base


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_memory_sqlite(database_url: str) -> bool:
    return _is_sqlite(database_url) and ":memory:" in database_url


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for the chunk store.

    Args:
        database_url: SQLAlchemy async URL
        echo: Log SQL statements

    Returns:
        Configured AsyncEngine
    """
    kwargs: dict = {"echo": echo}
    if _is_memory_sqlite(database_url):
        # One shared connection, otherwise every session sees an empty DB
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    elif not _is_sqlite(database_url):
        kwargs["pool_pre_ping"] = True

    engine = create_async_engine(database_url, **kwargs)

    if _is_sqlite(database_url):

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA busy_timeout=5000")
                if not _is_memory_sqlite(database_url):
                    cursor.execute("PRAGMA journal_mode=WAL")
            finally:
                cursor.close()

    logger.info(f"[DB] Engine created for {engine.url.render_as_string()}")
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory used by the chunk store.

    Args:
        engine: Async engine

    Returns:
        async_sessionmaker bound to the engine
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """
    Create chunk store tables if they do not exist.

    Args:
        engine: Async engine
    """
    # Register mapped classes with Base.metadata
    import cartridge.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("[DB] Schema ensured")
