"""
Mango API — Server Runner
===========================

What:  Process entry point (`python -m mango_api` or the `mango-api` script).
How:   Runs the startup sequence in strict order, then hands control to the
       ShutdownHandler until the process should exit.

Startup sequence:
    0. Load settings (missing required value → exit 1)
    1. Install middleware        ┐ create_app()
    2. Mount route aggregator    ┘
    3. Build engine and open database connection
                                 (failure → exit 1, listener never bound)
    4. Bind listener and serve   (ShutdownHandler.run)
"""

import asyncio
import logging
import sys
from typing import Optional

import uvicorn
from pydantic import ValidationError as SettingsError
from sqlalchemy.exc import SQLAlchemyError

from mango_api.config import Settings, get_settings
from mango_api.context import AppContext, DatabaseConnectionError
from mango_api.lifecycle import ManagedServer, ShutdownHandler
from mango_api.main import create_app, setup_logging

logger = logging.getLogger(__name__)


async def run_server(settings: Optional[Settings] = None) -> int:
    """
    Start the API and serve until shutdown. Returns the process exit code.
    """
    if settings is None:
        try:
            settings = get_settings()
        except SettingsError as e:
            setup_logging()
            logger.critical("Configuration error, refusing to start:\n%s", e)
            return 1

    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Mango API starting (%s)", settings.app_env)

    try:
        context = AppContext(settings)
    except (SQLAlchemyError, ImportError) as e:
        # Malformed URL, unknown dialect or missing driver package
        logger.critical("Startup aborted: unusable DATABASE_URL: %s", e)
        return 1
    app = create_app(context)

    try:
        await context.connect()
    except DatabaseConnectionError as e:
        logger.critical("Startup aborted: %s", e)
        await context.disconnect()
        return 1

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        lifespan="on",
    )
    server = ManagedServer(config)
    handler = ShutdownHandler(server, context, settings.shutdown_grace_period)
    context.shutdown_handler = handler

    logger.info("Binding listener on http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)
    return await handler.run()


def main() -> None:
    sys.exit(asyncio.run(run_server()))
