"""
Mango API — Middleware Package
================================

Middleware Chain (order matters):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and any error envelope
    carry the same correlation ID. CORS sits closest to the routes and
    answers preflight requests itself.
"""

from mango_api.middleware.logging import RequestLoggingMiddleware
from mango_api.middleware.request_id import RequestIDMiddleware, request_id_var

__all__ = ["RequestIDMiddleware", "RequestLoggingMiddleware", "request_id_var"]
