# This project was developed with assistance from AI tools.
"""Async engine and session management.

A ``DatabaseService`` is constructed once per process (the API lifespan does
this) and handed to whatever needs a session. Nothing in this module opens a
connection at import time.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from .config import db_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_kwargs(url: str, echo: bool) -> dict:
    """Dialect-specific engine options."""
    if url.startswith("sqlite"):
        kwargs: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "echo": echo,
        "pool_pre_ping": True,
        "pool_size": db_settings.POOL_SIZE,
        "max_overflow": db_settings.POOL_MAX_OVERFLOW,
    }


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT behaves on pysqlite/aiosqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class DatabaseService:
    """Owns the async engine and session factory.

    Args:
        url: SQLAlchemy async URL. Defaults to ``DATABASE_URL``.
        engine: An already-built engine (tests, alternate pools). Takes
            precedence over ``url``.
        echo: Log SQL statements. Defaults to ``SQL_ECHO``.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        engine: AsyncEngine | None = None,
        echo: bool | None = None,
    ):
        if engine is None:
            url = url or db_settings.DATABASE_URL
            echo = db_settings.SQL_ECHO if echo is None else echo
            engine = create_async_engine(url, **_engine_kwargs(url, echo))
        self.engine = engine
        if engine.dialect.name == "sqlite":
            _enable_sqlite_savepoints(engine)
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; roll back if the block raises."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create every table known to ``Base.metadata`` (tests, local dev)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def get_db_service(request: Request) -> DatabaseService:
    """FastAPI dependency: the process-wide DatabaseService from app state."""
    return request.app.state.db_service


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with get_db_service(request).session() as session:
        yield session
