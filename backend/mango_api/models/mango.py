"""
Mango API — Mango SQLAlchemy Model
====================================

What:  ORM model for the `mangoes` table (inventory items).
Who:   Used by MangoRepository for CRUD operations.

Table Design Rationale:
    - unit / season: short enum-like strings; membership is enforced by the
      Pydantic schema before anything reaches the table
    - price / stock: CHECK constraints repeat the schema's minimums so a
      write that bypasses the schema still cannot persist a negative value
    - origin: server-side default mirrors the schema default "Unknown"
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Float, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from mango_api.database import Base
from mango_api.models.base import EntityMixin


class Mango(EntityMixin, Base):
    """One mango stock line: a variety sold in a unit at a price."""

    __tablename__ = "mangoes"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    variety: Mapped[str] = mapped_column(String(100), nullable=False)
    unit: Mapped[str] = mapped_column(String(10), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    season: Mapped[str] = mapped_column(String(20), nullable=False)
    origin: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="Unknown",
        server_default=text("'Unknown'"),
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_mangoes_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_mangoes_stock_non_negative"),
        Index("idx_mangoes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Mango(id={self.id}, name='{self.name}', variety='{self.variety}')>"
