"""
Mango API — Custom Exception Hierarchy
========================================

What:  Defines application-specific errors for every failure the API reports.
Why:   Each error carries a machine-readable `ErrorKind`, so the controller can
       map it to an HTTP status with a pure lookup instead of isinstance chains.
How:   Each exception class carries a message and an optional context dict.
       Repositories return them inside a `Result`; exception handlers in
       main.py render any that escape a route as an envelope.
Who:   Raised inside repositories; classified by the controller.

Exception Hierarchy:
    MangoApiError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── InvalidIdentifierError   → 400 Bad Request (malformed id)
    ├── NotFoundError            → 404 Not Found
    ├── StoreError               → 500 Internal Server Error (logged)
    └── UnhandledFault           → fatal, triggers the shutdown handler
"""

import enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, enum.Enum):
    """Classification used by the controller's status mapping."""

    VALIDATION = "validation_error"
    INVALID_IDENTIFIER = "invalid_identifier"
    NOT_FOUND = "not_found"
    STORE = "store_error"
    UNHANDLED = "unhandled_fault"


class MangoApiError(Exception):
    """
    Base exception for all Mango API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where noted)
    """

    kind: ErrorKind = ErrorKind.UNHANDLED

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MangoApiError):
    """
    Raised when client input violates the entity schema.

    `errors` lists every violated field as {"field", "message"} pairs so the
    client can fix all of them in one round trip.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors or []
        ctx = context or {}
        if self.errors:
            ctx["fields"] = [e["field"] for e in self.errors]
        super().__init__(message=message, context=ctx)


class InvalidIdentifierError(MangoApiError):
    """Raised when an identifier is not a well-formed UUID."""

    kind = ErrorKind.INVALID_IDENTIFIER

    def __init__(self, resource: str = "resource", raw_id: str = ""):
        super().__init__(
            message=f"'{raw_id}' is not a valid {resource} identifier",
            context={"resource": resource, "resource_id": raw_id},
        )


class NotFoundError(MangoApiError):
    """
    Raised when a well-formed identifier matches no record.

    SQLAlchemy returns None for missing rows; repositories convert that into
    this error so the controller can answer 404.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(MangoApiError):
    """
    Raised when the database is unreachable or an operation fails.

    Security Note:
        The message returned to the client is always generic. Driver errors,
        SQL text and constraint names go to the server log through `context`.
    """

    kind = ErrorKind.STORE

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnhandledFault(MangoApiError):
    """
    Programming error or unforeseen failure outside request handling.

    Never returned to a client: the shutdown handler treats it as fatal.
    """

    kind = ErrorKind.UNHANDLED
