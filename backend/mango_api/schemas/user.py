"""
Mango API — User Schemas
==========================

What:  Entity schema and read model for users.
Why a pattern instead of EmailStr: only the basic shape is checked
(local@domain.tld); deliverability is not this API's concern.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PHONE_PATTERN = r"^\+?[0-9][0-9 \-]{5,18}$"


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


class UserSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, use_enum_values=True)

    name: str = Field(strict=True, min_length=1, max_length=100)
    email: str = Field(strict=True, max_length=254, pattern=EMAIL_PATTERN)
    role: UserRole = UserRole.CUSTOMER
    phone: Optional[str] = Field(
        default=None, strict=True, min_length=7, max_length=20, pattern=PHONE_PATTERN
    )
    is_active: bool = Field(default=True, strict=True)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """E-mail addresses are compared case-insensitively, so store them lower-cased."""
        return v.lower()


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
