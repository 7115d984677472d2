"""
StayBook Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `Database` is built from `Settings` by the application factory and
       stored on `app.state`. Each request gets its own session that commits
       on success and rolls back on error.
Who:   Route handlers receive sessions through `Depends(get_db_session)`.

Connection Strategy:
    PostgreSQL (asyncpg):
        pool_size / max_overflow / pool_timeout from settings
        connect timeout + per-statement command timeout
    SQLite (aiosqlite, local runs and tests):
        driver-managed pool, busy timeout only

    A request never waits forever on the database: pool checkout, connect and
    statement execution are all bounded, and the resulting driver error is
    converted to DatabaseError by the service layer.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings
from app.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model with one shared metadata object, which Alembic and
    `Database.create_all()` both read.
    """
    pass


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Builds create_async_engine() keyword arguments for the configured backend."""
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if settings.is_sqlite:
        options["connect_args"] = {"timeout": settings.db_connect_timeout}
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=3600,
        connect_args={
            "timeout": settings.db_connect_timeout,
            "command_timeout": settings.db_command_timeout,
        },
    )
    return options


class Database:
    """
    Owns the engine and session factory for one application instance.

    Example:
        db = Database(settings)
        async with db.session_factory() as session:
            ...
        await db.dispose()
    """

    def __init__(self, settings: Settings):
        self.engine: AsyncEngine = create_async_engine(
            settings.database_url, **engine_options(settings)
        )
        # expire_on_commit=False: response models are built from ORM objects
        # after the request transaction has been committed
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Creates all tables from model metadata (tests and local development)."""
        # Models must be imported so they register with Base.metadata
        from app.models import booking, listing, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Closes all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Commits when the handler returns, rolls back on any error. Storage errors
    raised while committing become DatabaseError so the global handler answers
    with a generic 500. Nothing is retried.

    Example usage in a route:
        @router.get("/places")
        async def list_places(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Transaction failed: %s", type(e).__name__, exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__}) from e
        except Exception:
            await session.rollback()
            raise
