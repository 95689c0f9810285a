"""
Mango API — Shared Model Columns
==================================

What:  The identity and timestamp columns every resource table carries.
Why:   The store assigns the identifier and the timestamps; resource models
       only declare their own fields.

Column Design Rationale:
    - UUID primary key: non-sequential, globally unique, immutable after insert
    - created_at / updated_at: UTC with timezone, set in Python so the value
      is known before the row is read back
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, TypeDecorator, Uuid
from sqlalchemy.orm import Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware DateTime that always comes back in UTC.

    PostgreSQL returns aware values already; SQLite drops the offset, so
    naive results are re-tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class EntityMixin:
    """Identity and audit timestamps shared by all resource models."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
