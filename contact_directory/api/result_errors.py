"""Use case Result -> RFC 7807 error mapping shared by the routers."""

from __future__ import annotations

from ..application.usecases.results import Result, UseCaseErrorCode
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    bad_request,
    conflict,
)


def raise_for_error(result: Result) -> None:
    if result.ok:
        return
    error = result.error
    if error.code == UseCaseErrorCode.VALIDATION_ERROR:
        raise bad_request(error.message)
    if error.code == UseCaseErrorCode.NOT_FOUND:
        raise AppHTTPException(404, ErrorCode.NOT_FOUND, error.message)
    if error.code == UseCaseErrorCode.CONFLICT:
        raise conflict(error.message)
    raise AppHTTPException(400, ErrorCode.PRIVILEGED_CALL_FAILED, error.message)
