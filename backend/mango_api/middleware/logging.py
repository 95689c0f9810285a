"""
Mango API — Access Logging Middleware
=======================================

What:  One log line per HTTP request: method, route, status, duration, client.
Why:   uvicorn's access log has no request ID and no duration.

Routes are logged by their template ("/mango/{entity_id}") when one matched,
so per-record paths do not explode log cardinality; the raw path is kept in
`extra` for lookups.

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO
    exception escaping the app → ERROR with status 500, then re-raised

Not logged: request bodies (may contain personal data such as e-mails).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mango_api.middleware.request_id import request_id_var

logger = logging.getLogger("mango_api.access")

# Probes run every few seconds; logging them buries real traffic
QUIET_PATHS = frozenset({"/health"})


def level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def route_of(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request once its response (or failure) is known."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, started)
            raise
        self._log(request, response.status_code, started)
        return response

    def _log(self, request: Request, status: int, started: float) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        route = route_of(request)
        logger.log(
            level_for(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            route,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "route": route,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
