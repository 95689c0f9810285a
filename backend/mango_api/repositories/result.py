"""
Mango API — Repository Result
===============================

What:  Outcome of one repository operation: a value or a typed error.
Why:   The controller decides the HTTP status from `result.error.kind` with a
       plain lookup; no repository error reaches it as a raised exception.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from mango_api.exceptions import MangoApiError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[MangoApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: MangoApiError) -> "Result[T]":
        return cls(error=error)
