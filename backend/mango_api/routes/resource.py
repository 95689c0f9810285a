"""
Mango API — Resource Router Factory
=====================================

What:  Binds the five standard operations of one controller to HTTP routes.

Route shape (relative to the resource prefix):
    POST   ""       → create      201 / 400
    GET    ""       → list        200 / 500
    GET    "/{id}"  → get         200 / 400 / 404
    PATCH  "/{id}"  → update      200 / 400 / 404
    DELETE "/{id}"  → delete      200 / 400 / 404

Bodies are accepted as raw JSON objects and validated by the repository, so
schema violations come back as 400 envelopes instead of FastAPI's 422.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mango_api.database import get_db_session
from mango_api.routes.controller import ResourceController
from mango_api.schemas.common import Envelope

ERROR_RESPONSES = {
    400: {"description": "Invalid input or identifier", "model": Envelope},
    404: {"description": "No record with this identifier", "model": Envelope},
    500: {"description": "Store failure", "model": Envelope},
}


def build_resource_router(prefix: str, tag: str, controller: ResourceController) -> APIRouter:
    """Route group for one resource, mounted at `prefix`."""
    router = APIRouter(prefix=prefix, tags=[tag], responses=ERROR_RESPONSES)
    label = controller.label.lower()

    @router.post("", status_code=201, response_model=Envelope, summary=f"Create a {label}")
    async def create_entity(
        payload: Dict[str, Any] = Body(...),
        session: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return await controller.create(session, payload)

    @router.get("", response_model=Envelope, summary=f"List all {controller.plural.lower()}")
    async def list_entities(
        session: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return await controller.list(session)

    @router.get("/{entity_id}", response_model=Envelope, summary=f"Get a {label} by ID")
    async def get_entity(
        entity_id: str,
        session: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return await controller.get(session, entity_id)

    @router.patch("/{entity_id}", response_model=Envelope, summary=f"Update a {label}")
    async def update_entity(
        entity_id: str,
        payload: Dict[str, Any] = Body(...),
        session: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return await controller.update(session, entity_id, payload)

    @router.delete("/{entity_id}", response_model=Envelope, summary=f"Delete a {label}")
    async def delete_entity(
        entity_id: str,
        session: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return await controller.delete(session, entity_id)

    return router
