"""
Mango API — Request ID Middleware
===================================

What:  Assigns a correlation ID to each request and echoes it in the response.
Why:   Log lines from one request share the ID; error envelopes carry it so a
       client report can be matched to server logs.
How:   Uses the client's X-Request-ID when present, otherwise a short UUID,
       stored in a ContextVar (coroutine-local) and on request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# ContextVar, not threading.local: concurrent requests share one thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets request_id_var for the duration of the request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
