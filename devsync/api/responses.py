"""
Translate service results into HTTP responses.

The body is always the result payload; only the status code depends on the
error kind.
"""
from fastapi import status
from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

from devsync.results import ErrorKind, Result

ERROR_STATUS = {
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.LIMIT_REACHED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.EXPIRED: status.HTTP_410_GONE,
    ErrorKind.EMAIL_MISMATCH: status.HTTP_403_FORBIDDEN,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_MEMBER: status.HTTP_409_CONFLICT,
    ErrorKind.CROSS_CONTEXT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.BOUNDARY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_IN_COLLECTION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(result: Result, success_status: int = status.HTTP_200_OK) -> int:
    if result.ok:
        return success_status
    return ERROR_STATUS.get(result.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def respond(result: Result, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(result, success_status),
        content=jsonable_encoder(result.to_payload()),
    )
