"""
Library Lending API — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency, and
       classification of persistence failures.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error, and turns
       raw driver exceptions into a small closed set of failure kinds.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by services when mapping failures to application errors.
When:  Engine is created at module import; sessions are created per-request.

Transaction ownership:
    Services that mutate state commit explicitly so that commit-time failures
    (unique violations, lost connections) are mapped to typed errors inside
    the service. The commit in get_db_session is then a no-op; it only matters
    for read-only requests.
"""

import enum
import logging
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    InterfaceError,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from library_api.config import settings

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
def _engine_options() -> dict:
    """
    Pool arguments for the configured backend.

    SQLite's aiosqlite dialect rejects QueuePool sizing for in-memory
    databases, so those arguments are only passed to server databases.
    """
    options = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """
    Turns on FOREIGN KEY enforcement for every new SQLite connection.

    SQLite ships with foreign keys off, per connection. Without this,
    lendings.book_isbn ON UPDATE CASCADE never fires and readers with open
    lendings can be deleted.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.database_url, **_engine_options())
if settings.is_sqlite:
    enable_sqlite_foreign_keys(engine)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay loaded after commit, so services can
# build response snapshots without another round trip (and without lazy IO).
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    tests use for create_all.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits whatever the handler left pending
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/book")
        async def list_books(db: AsyncSession = Depends(get_db_session)):
            return await book_service.list_books(db)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Failure Classification ────────────────────────────────────────────────
class DbErrorKind(str, enum.Enum):
    """
    Closed set of persistence failure categories.

    Every registry matches on all four members, so an unrecognised driver
    error always ends up as UNKNOWN (→ 500) and never leaks to the client.
    """

    DUPLICATE_KEY = "duplicate_key"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


# SQLSTATE codes (PostgreSQL) grouped by kind
_UNIQUE_VIOLATION = {"23505"}
_REFERENCE_VIOLATION = {"23503"}
_VALIDATION_VIOLATION = {"23502", "23514", "22001", "22P02"}


def _sqlstate(exc: SQLAlchemyError) -> str | None:
    """Extracts the SQLSTATE from the DBAPI exception when the driver exposes one."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def classify_db_error(exc: SQLAlchemyError) -> DbErrorKind:
    """
    Maps a SQLAlchemy exception to a DbErrorKind.

    PostgreSQL drivers report a SQLSTATE; SQLite only reports a message, so
    both are checked.
    """
    if isinstance(exc, NoResultFound):
        return DbErrorKind.NOT_FOUND

    code = _sqlstate(exc)
    detail = str(getattr(exc, "orig", exc))

    if isinstance(exc, IntegrityError):
        if code in _UNIQUE_VIOLATION or "UNIQUE constraint failed" in detail:
            return DbErrorKind.DUPLICATE_KEY
        if code in _REFERENCE_VIOLATION or "FOREIGN KEY constraint failed" in detail:
            return DbErrorKind.NOT_FOUND
        if code in _VALIDATION_VIOLATION or "NOT NULL constraint failed" in detail:
            return DbErrorKind.VALIDATION
        return DbErrorKind.UNKNOWN

    if isinstance(exc, DataError) or code in _VALIDATION_VIOLATION:
        return DbErrorKind.VALIDATION

    return DbErrorKind.UNKNOWN


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
@retry(
    retry=retry_if_exception_type((OperationalError, InterfaceError, OSError)),
    stop=stop_after_attempt(settings.db_connect_max_attempts),
    wait=wait_exponential_jitter(
        initial=settings.db_connect_min_wait,
        max=settings.db_connect_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def wait_for_database() -> None:
    """
    Blocks startup until SELECT 1 succeeds.

    A database container that is still booting refuses connections for a few
    seconds; creating tables or seeding readers before then would crash the
    process. The last failure is re-raised once attempts run out.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_tables() -> None:
    """Creates all tables from model metadata. Used when AUTO_CREATE_TABLES is on."""
    # Models must be imported so they register with Base.metadata
    from library_api.models import book, lending, reader  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool at shutdown."""
    await engine.dispose()
