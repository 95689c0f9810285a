"""
Mango API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app(context) returns a configured FastAPI app
       bound to one AppContext.
Who:   Called by the server runner (`python -m mango_api`), or by uvicorn
       directly: `uvicorn mango_api.main:create_app --factory`.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: Request ID → Access Log → GZip → CORS  │
    │                                                     │
    │  Routes:                                            │
    │   GET /  ·  GET /health                             │
    │   /mango  ·  /orders  ·  /users  (five ops each)    │
    │                                                     │
    │  Exception Handlers (all render the envelope):      │
    │   request validation → 400 │ HTTP errors → status  │
    │   MangoApiError → kind     │ anything else → 500    │
    └─────────────────────────────────────────────────────┘

Startup order:
    1. Middleware installed (create_app)
    2. Route aggregator mounted (create_app)
    3. Database connection opened (runner, or lifespan when served bare)
    4. Listener bound (uvicorn)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mango_api import __version__
from mango_api.config import Settings, get_settings
from mango_api.context import AppContext
from mango_api.exceptions import MangoApiError, ValidationError
from mango_api.middleware.logging import RequestLoggingMiddleware
from mango_api.middleware.request_id import RequestIDMiddleware, request_id_var
from mango_api.repositories.base import schema_errors
from mango_api.routes import build_api_router, health
from mango_api.routes.controller import error_response
from mango_api.schemas.common import Envelope, ErrorBody

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire process.

    Called once by the runner (or the lifespan) before anything else logs.
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Per-statement and per-request library logs duplicate our own lines
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: make sure the AppContext is connected. The runner connects
    before uvicorn starts, so this is a no-op there; under a bare uvicorn
    command a failed connect aborts startup before the socket is bound.

    Shutdown: dispose the connection pool.
    """
    context: AppContext = app.state.context
    if not context.connected:
        await context.connect()
    logger.info(
        "Mango API %s ready (%s) on port %d",
        __version__,
        context.settings.app_env,
        context.settings.port,
    )

    yield

    logger.info("Mango API shutting down...")
    await context.disconnect()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def request_id_of(request: Request) -> Optional[str]:
    """
    Correlation ID of the request being answered.

    The catch-all handler runs outside RequestIDMiddleware, after the
    ContextVar has been reset; request.state still holds the ID there.
    """
    return request_id_var.get("") or getattr(request.state, "request_id", None)


def _envelope(
    request: Request, status_code: int, message: str, error_type: str, details=None
) -> JSONResponse:
    envelope = Envelope(
        success=False,
        message=message,
        data=None,
        error=ErrorBody(type=error_type, details=details, request_id=request_id_of(request)),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Render every failure that escapes a route as an envelope.

    Handler hierarchy:
        RequestValidationError → 400 (malformed JSON, missing body)
        HTTPException          → its status (unknown path 404, wrong method 405)
        MangoApiError          → status from its kind
        Exception (fallback)   → 500, stack trace logged server-side only
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = schema_errors(exc)
        logger.warning("Request validation failed: %s", errors)
        return error_response(ValidationError(message="Invalid request body", errors=errors))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        error_type = "not_found" if exc.status_code == 404 else "http_error"
        return _envelope(request, exc.status_code, str(exc.detail), error_type)

    @app.exception_handler(MangoApiError)
    async def handle_app_error(request: Request, exc: MangoApiError):
        return error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _envelope(
            request,
            500,
            "An unexpected error occurred. Please try again or contact support.",
            "internal_server_error",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(context: Optional[AppContext] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        context:  AppContext to bind; built from settings when omitted
        settings: Settings to use when no context is given; defaults to
                  get_settings()
    """
    if context is None:
        settings = settings or get_settings()
        setup_logging(settings.log_level)
        context = AppContext(settings)
    settings = context.settings

    app = FastAPI(
        title="Mango API",
        description="Modular CRUD backend: mango inventory, orders and users.",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )
    app.state.context = context

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(build_api_router())

    return app
