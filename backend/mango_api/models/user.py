"""
Mango API — User SQLAlchemy Model
===================================

What:  ORM model for the `users` table.
Unique e-mail: enforced by a unique index; the repository translates the
resulting IntegrityError into a field-level validation error.
"""

from typing import Optional

from sqlalchemy import Boolean, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from mango_api.database import Base
from mango_api.models.base import EntityMixin


class User(EntityMixin, Base):
    """A customer or staff member. No credentials are stored."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="customer",
        server_default=text("'customer'"),
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
        Index("idx_users_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
