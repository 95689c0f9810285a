"""
Mango API — Order SQLAlchemy Model
====================================

What:  ORM model for the `orders` table.
Why total_price is stored: list views show it without recomputing, and the
repository rewrites it on every create/update so it cannot drift.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Float, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from mango_api.database import Base
from mango_api.models.base import EntityMixin


class Order(EntityMixin, Base):
    """A customer order for a quantity of one product."""

    __tablename__ = "orders"

    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    product: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
    )
    shipping_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_orders_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_orders_unit_price_non_negative"),
        Index("idx_orders_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, customer='{self.customer_name}', status='{self.status}')>"
