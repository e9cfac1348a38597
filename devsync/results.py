"""
Tagged operation results.

Every service operation returns either ``Success`` or ``Failure`` instead of
raising for expected outcomes; the HTTP layer and any other caller inspect the
variant and render it with ``to_payload``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    LIMIT_REACHED = "limit_reached"
    EXPIRED = "expired"
    EMAIL_MISMATCH = "email_mismatch"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"
    CROSS_CONTEXT = "cross_context"
    BOUNDARY = "boundary"
    NOT_IN_COLLECTION = "not_in_collection"
    ALREADY_MEMBER = "already_member"
    INTERNAL = "internal"


GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


@dataclass(frozen=True)
class Success:
    data: Any = None

    @property
    def ok(self) -> bool:
        return True

    def to_payload(self) -> Dict[str, Any]:
        return {"success": True, "data": self.data}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    error: str

    @property
    def ok(self) -> bool:
        return False

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error, "kind": self.kind.value}


Result = Union[Success, Failure]


def success(data: Any = None) -> Success:
    return Success(data=data)


def failure(kind: ErrorKind, error: str) -> Failure:
    return Failure(kind=kind, error=error)


def internal_failure() -> Failure:
    """Failure returned when the store itself misbehaves."""
    return Failure(kind=ErrorKind.INTERNAL, error=GENERIC_ERROR_MESSAGE)


__all__ = [
    "ErrorKind",
    "GENERIC_ERROR_MESSAGE",
    "Success",
    "Failure",
    "Result",
    "success",
    "failure",
    "internal_failure",
]
