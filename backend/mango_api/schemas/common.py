"""
Mango API — Shared Response Schemas
=====================================

What:  The uniform response envelope and the health payload.
Why:   Every endpoint answers with the same top-level shape, so clients parse
       success and failure the same way.

Envelope invariant:
    success is False  ⇔  an error occurred  ⇔  data is null and error is set

Example (failure):
    {
        "success": false,
        "message": "mango with ID '…' was not found",
        "data": null,
        "error": {"type": "not_found", "details": {"resource": "mango", …}}
    }
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

# Largest value an INTEGER column holds on every supported database
MAX_INTEGER = 2_147_483_647


class ErrorBody(BaseModel):
    """Machine-readable part of a failed envelope."""

    type: str = Field(description="Error kind, e.g. validation_error, not_found")
    details: Optional[Any] = Field(default=None, description="Field errors or lookup context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class Envelope(BaseModel):
    """Uniform response body for every endpoint."""

    success: bool = Field(description="False if and only if an error occurred")
    message: str = Field(description="Human-readable outcome")
    data: Optional[Any] = Field(default=None, description="Entity, list of entities, or null")
    error: Optional[ErrorBody] = Field(default=None, description="Present only on failure")


class HealthStatus(BaseModel):
    """
    Health payload carried in the envelope's data by GET /health.

    A backend that cannot reach its database is effectively down, so the
    database probe decides the overall status.
    """

    status: str = Field(description="healthy or unhealthy")
    version: str
    environment: str
    database: str = Field(description="connected or disconnected")
    lifecycle: str = Field(description="running, draining or terminated")
    uptime_seconds: float
