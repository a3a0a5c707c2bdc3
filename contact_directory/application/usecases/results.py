"""
Name: Use case results (shared result / error models)

Responsibilities:
  - Small, stable set of use case error codes
  - Typed results so the API maps outcomes to status codes in one place

Collaborators:
  - application/usecases/users.py, application/usecases/contacts.py
  - api/admin_routes.py, api/contact_routes.py
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class UseCaseErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PRIVILEGED_CALL_FAILED = "PRIVILEGED_CALL_FAILED"


@dataclass(frozen=True)
class UseCaseError:
    code: UseCaseErrorCode
    message: str
    provider_code: str | None = None


@dataclass
class Result(Generic[T]):
    value: T | None = None
    error: UseCaseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        code: UseCaseErrorCode,
        message: str,
        *,
        provider_code: str | None = None,
    ) -> "Result[T]":
        return cls(error=UseCaseError(code, message, provider_code))


@dataclass
class BulkResult:
    """Outcome of a bulk contact operation."""

    count: int = 0
    skipped: list[dict] = field(default_factory=list)
