"""
Library Lending API — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── db_engine: In-memory SQLite engine with all tables created
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── db_session: One AsyncSession for service-level tests
    ├── mock_db_session: AsyncMock session for failure injection
    ├── book / reader: Rows created through the services
    └── test_client: HTTPX AsyncClient whose requests use db_engine
"""

import os

# Override settings for testing BEFORE any library_api imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_DEFAULT_READERS"] = "false"
os.environ["API_PREFIX"] = ""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from library_api.database import Base, enable_sqlite_foreign_keys, get_db_session
from library_api.models import book as _book_model  # noqa: F401
from library_api.models import lending as _lending_model  # noqa: F401
from library_api.models import reader as _reader_model  # noqa: F401
from library_api.schemas.book import BookCreate
from library_api.schemas.reader import ReaderCreate
from library_api.services.book_service import book_service
from library_api.services.reader_service import reader_service

DUNE_ISBN = "9780441013593"
HOBBIT_ISBN = "9780547928227"
GATSBY_ISBN = "978-84-673-2435-8"


@pytest_asyncio.fixture
async def db_engine():
    """
    Provides a real transactional database for each test.

    StaticPool keeps the single in-memory connection alive for the whole
    test, so every session sees the same tables and rows.
    Foreign keys are enforced exactly as on the application engine.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        await lending_service.list_lendings(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def book(db_session):
    return await book_service.create_book(db_session, BookCreate(name="Dune", ISBN=DUNE_ISBN))


@pytest_asyncio.fixture
async def reader(db_session):
    return await reader_service.create_reader(db_session, ReaderCreate(name="reader one"))


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    Provides an async HTTP test client for endpoint testing.

    Uses ASGITransport to route requests directly to the app, with
    get_db_session overridden to use the per-test SQLite engine.
    """
    from library_api.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
