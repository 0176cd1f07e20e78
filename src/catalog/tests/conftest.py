"""
Core pytest configuration for the whole test suite.

Only database setup and app/client wiring live here. Domain fixtures (repositories,
factories, payloads) are in `test_fixtures/` and re-exported at the bottom of this
module so every test can use them without importing.

Database: each test gets its own in-memory SQLite database (sqlite+aiosqlite with
a StaticPool so every session shares the one connection). Set TEST_DATABASE_URL
to run against another server instead; tables are dropped and recreated per test.
"""

import logging
import os
from typing import AsyncGenerator
from urllib.parse import urlparse

NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "asyncio",
    "httpx",
    "aiosqlite",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from pytest import FixtureRequest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import catalog.models  # noqa: F401 - registers the tables on Base.metadata
from catalog.config import Settings, get_settings
from catalog.core.logging.builder import setup_logging
from catalog.database.base import Base
from catalog.database.session import get_async_session, make_sessionmaker
from catalog.main import create_app

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install the application's logging config for the test session, then re-attach
    pytest's capture handler (dictConfig replaces the root handlers) so `caplog`
    keeps working.
    """
    setup_logging(settings)

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)

    yield


def safe_log_db_url(db_url: str) -> str:
    """Drop credentials from a database URL before logging it."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url() -> str:
    """
    1. TEST_DATABASE_URL (CI override)
    2. in-memory SQLite
    """
    return os.getenv("TEST_DATABASE_URL") or "sqlite+aiosqlite://"


TEST_DATABASE_URL = get_test_database_url()
logger.info("tests.database", extra={"url": safe_log_db_url(TEST_DATABASE_URL)})


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    else:
        engine = create_async_engine(TEST_DATABASE_URL, pool_pre_ping=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Same factory settings as the application (expire_on_commit=False, autoflush=False)."""
    return make_sessionmaker(async_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def app_settings() -> Settings:
    """Settings handed to the app and services under test; override per test module."""
    return Settings()


@pytest.fixture
async def client(session_factory, app_settings) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to a fresh app. Each request gets its own session from the
    test engine, like production requests do.
    """
    from catalog.api.v1.products import get_product_service
    from catalog.services.product_service import ProductService

    app = create_app(app_settings)

    async def _session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _service_override(db: AsyncSession = Depends(get_async_session)):
        return ProductService(db, settings=app_settings)

    app.dependency_overrides[get_async_session] = _session_override
    app.dependency_overrides[get_product_service] = _service_override

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


from .test_fixtures.catalog_fixtures import (  # noqa: E402
    category_repository,
    create_category,
    create_product,
    fetch_product,
    product_payload,
    product_repository,
    product_service,
)
