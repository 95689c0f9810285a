"""
Mango API — Order Schemas
===========================

`total_price` is not accepted as input: the repository derives it from
quantity × unit_price on every write.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from mango_api.schemas.common import MAX_INTEGER


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, use_enum_values=True)

    customer_name: str = Field(strict=True, min_length=1, max_length=100)
    product: str = Field(strict=True, min_length=1, max_length=100)
    quantity: int = Field(strict=True, ge=1, le=MAX_INTEGER)
    unit_price: float = Field(strict=True, ge=0, allow_inf_nan=False)
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: Optional[str] = Field(default=None, strict=True, max_length=500)


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_name: str
    product: str
    quantity: int
    unit_price: float
    total_price: float
    status: str
    shipping_address: Optional[str] = None
    created_at: datetime
    updated_at: datetime
