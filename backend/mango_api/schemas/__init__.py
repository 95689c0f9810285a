"""
Mango API — Pydantic Schemas
==============================

Schemas are separate from SQLAlchemy models because the API contract and the
table layout change independently: an entity schema states the input
constraints, a read model states exactly what is exposed.
"""

from mango_api.schemas.common import Envelope, ErrorBody, HealthStatus
from mango_api.schemas.mango import MangoRead, MangoSchema
from mango_api.schemas.order import OrderRead, OrderSchema
from mango_api.schemas.user import UserRead, UserSchema

__all__ = [
    "Envelope",
    "ErrorBody",
    "HealthStatus",
    "MangoRead",
    "MangoSchema",
    "OrderRead",
    "OrderSchema",
    "UserRead",
    "UserSchema",
]
