"""
Mango API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that touches the database gets its own SQLite file under
       pytest's tmp_path, opened through aiosqlite. No server is started:
       HTTP tests drive the ASGI app through httpx's ASGITransport.

Fixture Hierarchy (all function-scoped):
    settings   → Settings pointing at a fresh SQLite file
    context    → connected AppContext (tables created)
    session    → AsyncSession from the context
    app        → FastAPI app bound to the context
    client     → httpx AsyncClient talking to the app
"""

import os

# Required settings, set before any application import reads the environment
os.environ.setdefault("PORT", "8000")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mango_api.config import Settings
from mango_api.context import AppContext
from mango_api.main import create_app


@pytest.fixture
def settings(tmp_path):
    """Settings for an isolated on-disk SQLite database."""
    return Settings(
        port=8000,
        app_env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'mango_test.db'}",
        db_connect_attempts=1,
        db_connect_wait=0,
        log_level="WARNING",
        shutdown_grace_period=1.0,
    )


@pytest_asyncio.fixture
async def context(settings):
    ctx = AppContext(settings)
    await ctx.connect()
    yield ctx
    await ctx.disconnect()


@pytest_asyncio.fixture
async def session(context):
    async with context.session_factory() as db:
        yield db


@pytest.fixture
def app(context):
    return create_app(context)


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient routed straight into the app.

    ASGITransport does not run the lifespan; the `context` fixture has
    already connected, which is what the lifespan would do.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def mango_payload():
    """The reference mango: every required field, no optional ones."""
    return {
        "name": "Haden",
        "variety": "A",
        "unit": "KG",
        "price": 10,
        "stock": 5,
        "season": "Summer",
    }


@pytest.fixture
def order_payload():
    return {
        "customer_name": "Asha Rao",
        "product": "Alphonso box",
        "quantity": 3,
        "unit_price": 12.5,
    }


@pytest.fixture
def user_payload():
    return {
        "name": "Ravi Kumar",
        "email": "Ravi.Kumar@Example.com",
    }
