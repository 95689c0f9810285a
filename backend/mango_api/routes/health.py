"""
Mango API — Liveness & Health Routes
======================================

GET /        liveness: answers as long as the process serves HTTP
GET /health  readiness: probes the database and reports the lifecycle state

Status levels:
    healthy:   database reachable and not shutting down (HTTP 200)
    unhealthy: database unreachable or draining (HTTP 503, stop routing traffic)
"""

import time

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from mango_api import __version__
from mango_api.routes.controller import success_response
from mango_api.schemas.common import Envelope, HealthStatus

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=Envelope, summary="Liveness check")
async def welcome() -> JSONResponse:
    return success_response(None, "Welcome to the Mango API")


@router.get(
    "/health",
    response_model=Envelope,
    summary="Service health check",
    responses={503: {"description": "Database unreachable or shutting down", "model": Envelope}},
)
async def health_check(request: Request) -> JSONResponse:
    """
    Probe the database with SELECT 1 and report the shutdown state.

    A draining instance reports unhealthy so load balancers stop sending it
    new traffic while in-flight requests finish.
    """
    context = request.app.state.context
    database = "connected" if await context.ping() else "disconnected"
    handler = context.shutdown_handler
    lifecycle = handler.state if handler is not None else "running"
    healthy = database == "connected" and lifecycle == "running"

    payload = HealthStatus(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        environment=context.settings.app_env,
        database=database,
        lifecycle=lifecycle,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if healthy:
        return success_response(payload.model_dump(), "Service is healthy")
    envelope = Envelope(
        success=False,
        message="Service is unhealthy",
        data=None,
        error={"type": "unhealthy", "details": payload.model_dump()},
    )
    return JSONResponse(status_code=503, content=jsonable_encoder(envelope))
