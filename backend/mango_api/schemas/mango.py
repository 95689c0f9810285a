"""
Mango API — Mango Schemas
===========================

What:  Entity schema (input constraints) and read model for mangoes.
How:   `MangoSchema` is validated on create and, merged over the stored
       record, on every update; `MangoRead` serializes ORM rows.

Constraints:
    name, variety   required text, 1–100 chars (whitespace trimmed)
    unit            one of KG, DOZEN, PIECE, BOX
    price           finite number ≥ 0
    stock           integer, 0 to MAX_INTEGER
    season          one of Summer, Monsoon, Winter, Spring
    origin          optional, defaults to "Unknown"
    description     optional, ≤ 500 chars

Types are checked strictly: "10" is not a number and true is not an
integer. Integers are accepted where a number is expected. Enum fields take
their string values.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from mango_api.schemas.common import MAX_INTEGER


class MangoUnit(str, enum.Enum):
    KG = "KG"
    DOZEN = "DOZEN"
    PIECE = "PIECE"
    BOX = "BOX"


class Season(str, enum.Enum):
    SUMMER = "Summer"
    MONSOON = "Monsoon"
    WINTER = "Winter"
    SPRING = "Spring"


class MangoSchema(BaseModel):
    """Full-entity constraints for a mango stock line."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, use_enum_values=True)

    name: str = Field(strict=True, min_length=1, max_length=100)
    variety: str = Field(strict=True, min_length=1, max_length=100)
    unit: MangoUnit
    price: float = Field(strict=True, ge=0, allow_inf_nan=False)
    stock: int = Field(strict=True, ge=0, le=MAX_INTEGER)
    season: Season
    origin: str = Field(default="Unknown", strict=True, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, strict=True, max_length=500)


class MangoRead(BaseModel):
    """Mango as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    variety: str
    unit: str
    price: float
    stock: int
    season: str
    origin: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
