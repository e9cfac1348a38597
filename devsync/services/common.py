"""
Shared plumbing for service operations.

``guarded`` is the error boundary of every public service method: expected
outcomes are returned as ``Success``/``Failure`` by the method itself, while
store failures are rolled back, logged, and turned into a generic failure.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from devsync.db.schemas import first_error_message
from devsync.results import ErrorKind, Failure, failure, internal_failure

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def guarded(method):
    """Convert store failures raised by ``method`` into an internal Failure."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError:
            logger.exception("%s failed", method.__qualname__)
            self.db.rollback()
            return internal_failure()

    return wrapper


def parse_payload(schema: Type[SchemaT], data: Any) -> Tuple[Optional[SchemaT], Optional[Failure]]:
    """Validate ``data`` against ``schema``; report the first problem as a Failure."""
    if isinstance(data, schema):
        return data, None
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data or {}), None
    except ValidationError as exc:
        return None, failure(ErrorKind.VALIDATION_ERROR, first_error_message(exc))


def unauthorized(message: str = "Unauthorized") -> Failure:
    return failure(ErrorKind.UNAUTHORIZED, message)


def not_found(message: str) -> Failure:
    return failure(ErrorKind.NOT_FOUND, message)
