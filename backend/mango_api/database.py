"""
Mango API — Database Engine & Session Management
==================================================

What:  Declarative base, async engine factory, and the per-request session
       dependency.
Why:   Centralizes all database connection logic in one place.
How:   `build_engine()` creates an async engine with connection pooling from
       Settings; `get_db_session` hands each request its own session drawn
       from the process-wide AppContext.
Who:   Models inherit `Base`; route handlers depend on `get_db_session`.

Connection Pooling Strategy:
    pool_size / max_overflow: bounded concurrency against PostgreSQL
    pool_pre_ping:            validates connections before use
    pool_recycle=3600:        recycles long-lived connections hourly
    SQLite (tests, local dev) uses SQLAlchemy's default pool for its dialect.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from mango_api.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every resource model registers its table on this metadata; the
    AppContext creates missing tables from it when it connects.
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    The engine is lazy: no connection is opened until AppContext.connect()
    runs its first statement.
    """
    options = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **options)


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the AppContext stored on the application
        2. Yields it to the route handler
        3. On error: rolls back whatever the handler left uncommitted
        4. Always: closes the session (returns connection to pool)

    Repositories commit inside their own write operations so that a failing
    commit is reported through the envelope like any other store error.
    """
    context = request.app.state.context
    async with context.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
