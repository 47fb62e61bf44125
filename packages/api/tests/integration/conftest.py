# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container runs ``alembic upgrade head`` once. Each test
gets its own ``DatabaseService`` bound to that database and every table is
truncated afterwards, so the fixtures in ``tests/conftest.py`` (seed
helpers, ``db_session``, ``client_factory``) run unchanged against Postgres.
"""

import os

import pytest
import pytest_asyncio
from db import Base, DatabaseService
from sqlalchemy import text
from testcontainers.postgres import PostgresContainer

# ---------------------------------------------------------------------------
# Mark all tests in this directory as integration
# ---------------------------------------------------------------------------
pytestmark = pytest.mark.integration

_DB_PACKAGE = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


# ---------------------------------------------------------------------------
# Session-scoped: container + migrations
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    with PostgresContainer(
        image="postgres:16-alpine",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(pg_container):
    """Sync DB URL for Alembic (psycopg2)."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def migrated(sync_db_url):
    """Run alembic upgrade head against the container."""
    from alembic import command
    from alembic.config import Config

    os.environ["DATABASE_URL"] = sync_db_url
    alembic_cfg = Config(os.path.join(_DB_PACKAGE, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(_DB_PACKAGE, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")
    return sync_db_url


# ---------------------------------------------------------------------------
# Function-scoped: per-test service, tables truncated afterwards
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_service(db_url, migrated):
    service = DatabaseService(db_url)
    yield service
    tables = ", ".join(t.name for t in reversed(Base.metadata.sorted_tables))
    async with service.engine.begin() as conn:
        await conn.execute(text(f"TRUNCATE {tables} CASCADE"))
    await service.dispose()
