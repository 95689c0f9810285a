"""
Mango API — Application Context
=================================

What:  The one object that owns process-wide handles: settings, the database
       engine and its session factory.
Why:   Handles are created at bootstrap and released at shutdown in one
       place, instead of living as free-floating module globals.
How:   The server runner (or the app lifespan, when the app is served by a
       bare `uvicorn` command) calls `connect()` before listening and
       `disconnect()` while draining. Route handlers reach the context
       through `request.app.state.context`.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    stop_after_attempt,
    wait_fixed,
)

from mango_api.config import Settings
from mango_api.database import Base, build_engine

# Registers every resource table on Base.metadata before create_all runs
import mango_api.models  # noqa: F401

logger = logging.getLogger(__name__)


class DatabaseConnectionError(RuntimeError):
    """The database could not be reached during startup."""


class AppContext:
    """
    Process-wide state for one running application.

    Lifecycle:
        AppContext(settings) → connect() → [serving] → disconnect()

    The session factory is shared by all requests; each request opens its
    own AsyncSession from it. SQLAlchemy's pool makes that safe for
    concurrent use.
    """

    def __init__(self, settings: Settings, engine: Optional[AsyncEngine] = None):
        self.settings = settings
        self.engine = engine or build_engine(settings)
        # expire_on_commit=False: entities stay readable after commit,
        # which the controller needs to serialize them
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.connected = False
        self.shutdown_handler = None

    async def connect(self) -> None:
        """
        Open the database connection and make sure every table exists.

        Retries with tenacity for `db_connect_attempts` attempts, then raises
        DatabaseConnectionError. Callers treat that as fatal.
        """
        if self.connected:
            return
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.db_connect_attempts),
                wait=wait_fixed(self.settings.db_connect_wait),
                before_sleep=before_sleep_log(logger, logging.WARNING),
            ):
                with attempt:
                    async with self.engine.begin() as conn:
                        await conn.execute(text("SELECT 1"))
                        await conn.run_sync(Base.metadata.create_all)
        except RetryError as e:
            cause = e.last_attempt.exception() if e.last_attempt else None
            raise DatabaseConnectionError(
                f"Could not connect to the database after "
                f"{self.settings.db_connect_attempts} attempt(s): {cause}"
            ) from cause

        self.connected = True
        logger.info("Database connection established (%s)", self.engine.url.get_backend_name())

    async def disconnect(self) -> None:
        """Dispose the pool. Safe to call more than once."""
        await self.engine.dispose()
        if self.connected:
            logger.info("Database connection closed")
        self.connected = False

    async def ping(self) -> bool:
        """Lightweight reachability check used by the health route."""
        if not self.connected:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Health check: database unreachable: %s", str(e))
            return False
