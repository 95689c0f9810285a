"""
Mango API — Generic Resource Repository
=========================================

What:  The five standard operations (create, list, get_by_id, update_by_id,
       delete_by_id) implemented once for any resource model.
Why:   Resource modules differ only in their model and entity schema; the
       CRUD bodies are identical, so they live here.
How:   A subclass sets `model`, `schema` and `resource_name`. Every public
       operation returns a `Result`; errors are classified here:

    input fails the entity schema     → ValidationError
    identifier is not a UUID          → InvalidIdentifierError
    no row for a valid identifier     → NotFoundError
    unique constraint violated        → ValidationError on that field
    any other SQLAlchemy failure      → StoreError (logged with context)

Anything else is a programming error and propagates to the app's catch-all
handler.

Write path:
    validate → assign → commit → refresh
    Commit happens inside the operation so a failing commit is classified
    like any other store error instead of surfacing after the response.
"""

import logging
import uuid
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, Generic, List, Tuple, Type, TypeVar, Union

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mango_api.database import Base
from mango_api.exceptions import (
    InvalidIdentifierError,
    MangoApiError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from mango_api.repositories.result import Result

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def schema_errors(exc: Union[SchemaValidationError, RequestValidationError]) -> List[Dict[str, str]]:
    """Flatten Pydantic or FastAPI request errors into [{"field": ..., "message": ...}]."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        errors.append({"field": field, "message": err.get("msg", "Invalid value")})
    return errors


class Repository(Generic[ModelT]):
    """
    CRUD operations for one resource over an AsyncSession.

    Class attributes set by subclasses:
        model:          SQLAlchemy model class
        schema:         Pydantic entity schema (full-entity constraints)
        resource_name:  singular name used in messages ("mango")
        unique_fields:  columns with a unique index, reported as field errors
        sort_key:       column `list()` orders by, newest first
    """

    model: Type[ModelT]
    schema: Type[BaseModel]
    resource_name: str = "resource"
    unique_fields: Tuple[str, ...] = ()
    sort_key: str = "created_at"

    # ── Schema ────────────────────────────────────────────────────────────

    def validate(self, data: Any) -> Dict[str, Any]:
        """
        Validate raw input against the entity schema.

        Returns column values with defaults applied and enums as plain
        strings; raises ValidationError naming every violated field.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(
                message="Request body must be a JSON object",
                errors=[{"field": "body", "message": "Expected an object"}],
            )
        try:
            entity = self.schema.model_validate(dict(data))
        except SchemaValidationError as e:
            errors = schema_errors(e)
            raise ValidationError(
                message=f"Invalid {self.resource_name}: "
                + "; ".join(f"{err['field']}: {err['message']}" for err in errors),
                errors=errors,
            )
        return self.prepare(entity.model_dump(mode="json"))

    def prepare(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Hook for derived columns. Default: no derived columns."""
        return values

    def snapshot(self, entity: ModelT) -> Dict[str, Any]:
        """Current values of the schema's fields, used as the base of an update."""
        return {name: getattr(entity, name) for name in self.schema.model_fields}

    def parse_id(self, raw_id: Any) -> uuid.UUID:
        if isinstance(raw_id, uuid.UUID):
            return raw_id
        try:
            return uuid.UUID(str(raw_id))
        except (ValueError, TypeError, AttributeError):
            raise InvalidIdentifierError(resource=self.resource_name, raw_id=str(raw_id))

    # ── Public operations ─────────────────────────────────────────────────

    async def create(self, session: AsyncSession, data: Any) -> Result[ModelT]:
        return await self._run(session, "create", self._create, session, data)

    async def list(self, session: AsyncSession) -> Result[List[ModelT]]:
        return await self._run(session, "list", self._list, session)

    async def get_by_id(self, session: AsyncSession, raw_id: Any) -> Result[ModelT]:
        return await self._run(session, "get", self._get, session, raw_id)

    async def update_by_id(self, session: AsyncSession, raw_id: Any, data: Any) -> Result[ModelT]:
        return await self._run(session, "update", self._update, session, raw_id, data)

    async def delete_by_id(self, session: AsyncSession, raw_id: Any) -> Result[ModelT]:
        return await self._run(session, "delete", self._delete, session, raw_id)

    # ── Operation bodies ──────────────────────────────────────────────────

    async def _create(self, session: AsyncSession, data: Any) -> ModelT:
        values = self.validate(data)
        entity = self.model(**values)
        session.add(entity)
        await self._commit(session)
        await session.refresh(entity)
        logger.info("Created %s %s", self.resource_name, entity.id)
        return entity

    async def _list(self, session: AsyncSession) -> List[ModelT]:
        query = select(self.model).order_by(desc(getattr(self.model, self.sort_key)))
        result = await session.execute(query)
        return list(result.scalars().all())

    async def _get(self, session: AsyncSession, raw_id: Any) -> ModelT:
        entity_id = self.parse_id(raw_id)
        entity = await session.get(self.model, entity_id)
        if entity is None:
            raise NotFoundError(resource=self.resource_name, resource_id=str(entity_id))
        return entity

    async def _update(self, session: AsyncSession, raw_id: Any, data: Any) -> ModelT:
        entity = await self._get(session, raw_id)
        if not isinstance(data, Mapping):
            # Reuse validate() for the uniform error shape
            self.validate(data)
        merged = {**self.snapshot(entity), **dict(data)}
        values = self.validate(merged)
        for name, value in values.items():
            setattr(entity, name, value)
        await self._commit(session)
        await session.refresh(entity)
        logger.info("Updated %s %s", self.resource_name, entity.id)
        return entity

    async def _delete(self, session: AsyncSession, raw_id: Any) -> ModelT:
        # Existence is checked first: deleting an unknown or already-deleted
        # id reports NotFound instead of succeeding with no data
        entity = await self._get(session, raw_id)
        await session.delete(entity)
        await self._commit(session)
        logger.info("Deleted %s %s", self.resource_name, entity.id)
        return entity

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise self._integrity_error(e) from e

    def _integrity_error(self, exc: IntegrityError) -> MangoApiError:
        detail = str(exc.orig) if exc.orig is not None else str(exc)
        for field in self.unique_fields:
            if field in detail:
                return ValidationError(
                    message=f"A {self.resource_name} with this {field} already exists",
                    errors=[{"field": field, "message": "Value already exists"}],
                )
        return ValidationError(
            message=f"The {self.resource_name} violates a store constraint",
            context={"constraint": detail},
        )

    async def _run(
        self,
        session: AsyncSession,
        operation: str,
        body: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Result:
        try:
            return Result.success(await body(*args))
        except MangoApiError as e:
            return Result.failure(e)
        except SQLAlchemyError as e:
            logger.error(
                "Store error during %s %s: %s",
                operation,
                self.resource_name,
                str(e),
                exc_info=True,
            )
            await self._safe_rollback(session)
            return Result.failure(
                StoreError(
                    message=f"Could not {operation} {self.resource_name}. Please try again later.",
                    context={
                        "operation": operation,
                        "resource": self.resource_name,
                        "error_type": type(e).__name__,
                    },
                )
            )

    async def _safe_rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            logger.warning("Rollback after store error failed: %s", str(e))
