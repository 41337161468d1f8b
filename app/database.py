"""
Database Connection Module
Handles the connection using the SQLAlchemy async engine.

The engine and session factory are created once at import and disposed
by the application lifespan on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.core.errors import AppError, PersistenceFailure

logger = logging.getLogger(__name__)
settings = get_settings()


def _serialize_sqlite_transactions(bind: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, so two concurrent
    read-then-write transactions deadlock on the lock upgrade instead of
    queueing. BEGIN IMMEDIATE makes the second one wait its turn.
    """

    @event.listens_for(bind.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(bind.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(url, echo=echo)
        _serialize_sqlite_transactions(sqlite_engine)
        return sqlite_engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=5,  # Connection pool size
        max_overflow=10,  # Extra connections when pool is full
        pool_pre_ping=True,
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,  # Objects remain accessible after commit
    )


engine = build_engine(settings.database_url, echo=settings.database_echo)
async_session_maker = build_session_maker(engine)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Unit of work: commit on success, roll back everything on any failure.

    Storage errors other than integrity violations are logged in full and
    re-raised as an opaque PersistenceFailure. IntegrityError is re-raised
    unchanged so callers can map constraint violations to domain errors.
    """
    try:
        yield session
        await session.commit()
    except AppError:
        await session.rollback()
        raise
    except IntegrityError:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception(f"Database transaction failed: {e}")
        raise PersistenceFailure() from e
    except Exception:
        await session.rollback()
        raise


async def init_db(bind: AsyncEngine = engine) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register models on Base.metadata
    from app import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")
