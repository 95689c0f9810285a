"""
Mango API — Resource Controller
=================================

What:  Turns one HTTP request into exactly one repository call and one
       envelope response.
Why:   The repository returns a `Result`; choosing the status code is a pure
       function of the error kind (`status_for`), testable without HTTP.
Who:   Instantiated once per resource module by the route aggregator; its
       methods are bound to routes by `build_resource_router`.

Status mapping:
    create success → 201; every other success → 200
    validation_error / invalid_identifier → 400
    not_found → 404
    store_error → 500 (details logged, generic message to client)
"""

import logging
from typing import Any, Dict, Optional, Type

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mango_api.exceptions import ErrorKind, MangoApiError, ValidationError
from mango_api.middleware.request_id import request_id_var
from mango_api.repositories.base import Repository
from mango_api.repositories.result import Result
from mango_api.schemas.common import Envelope, ErrorBody

logger = logging.getLogger(__name__)

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_IDENTIFIER: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORE: 500,
    ErrorKind.UNHANDLED: 500,
}


def status_for(error: MangoApiError) -> int:
    """HTTP status for a classified error."""
    return STATUS_BY_KIND.get(error.kind, 500)


def error_body(error: MangoApiError) -> ErrorBody:
    """
    Client-visible error detail.

    Store errors expose nothing beyond their kind: their context holds driver
    and operation details that stay in the server log.
    """
    details: Optional[Any] = None
    if isinstance(error, ValidationError):
        details = error.errors or None
    elif error.kind in (ErrorKind.NOT_FOUND, ErrorKind.INVALID_IDENTIFIER):
        details = error.context
    return ErrorBody(type=error.kind.value, details=details, request_id=request_id_var.get("") or None)


def error_response(error: MangoApiError) -> JSONResponse:
    """Envelope with success=false and no data."""
    status = status_for(error)
    if status >= 500:
        logger.error("%s: %s | Context: %s", error.kind.value, error.message, error.context)
    envelope = Envelope(success=False, message=error.message, data=None, error=error_body(error))
    return JSONResponse(status_code=status, content=jsonable_encoder(envelope))


def success_response(data: Any, message: str, status_code: int = 200) -> JSONResponse:
    envelope = Envelope(success=True, message=message, data=data)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope, exclude={"error"}),
    )


class ResourceController:
    """
    Envelope-producing CRUD endpoints for one resource.

    Args:
        repository:   the resource's Repository instance
        read_schema:  Pydantic read model used to serialize entities
        label:        singular display name ("Mango")
        plural:       plural display name ("Mangoes")
    """

    def __init__(
        self,
        repository: Repository,
        read_schema: Type[BaseModel],
        label: str,
        plural: str,
    ):
        self.repository = repository
        self.read_schema = read_schema
        self.label = label
        self.plural = plural

    def serialize(self, entity: Any) -> Dict[str, Any]:
        return self.read_schema.model_validate(entity).model_dump(mode="json")

    def respond(self, result: Result, message: str, status_code: int = 200) -> JSONResponse:
        if not result.ok:
            return error_response(result.error)
        if isinstance(result.value, list):
            data = [self.serialize(entity) for entity in result.value]
        else:
            data = self.serialize(result.value)
        return success_response(data, message, status_code)

    async def create(self, session: AsyncSession, payload: Any) -> JSONResponse:
        result = await self.repository.create(session, payload)
        return self.respond(result, f"{self.label} created successfully", status_code=201)

    async def list(self, session: AsyncSession) -> JSONResponse:
        result = await self.repository.list(session)
        return self.respond(result, f"{self.plural} retrieved successfully")

    async def get(self, session: AsyncSession, entity_id: str) -> JSONResponse:
        result = await self.repository.get_by_id(session, entity_id)
        return self.respond(result, f"{self.label} retrieved successfully")

    async def update(self, session: AsyncSession, entity_id: str, payload: Any) -> JSONResponse:
        result = await self.repository.update_by_id(session, entity_id, payload)
        return self.respond(result, f"{self.label} updated successfully")

    async def delete(self, session: AsyncSession, entity_id: str) -> JSONResponse:
        result = await self.repository.delete_by_id(session, entity_id)
        return self.respond(result, f"{self.label} deleted successfully")
