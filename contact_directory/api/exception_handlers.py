"""
Name: Centralised exception handling

Responsibilities:
  - Translate typed application errors into RFC 7807 responses
  - Log service errors with request_id + error_id
  - Keep internal details out of unhandled-error responses in production

Collaborators:
  - crosscutting/error_responses.py: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting/exceptions.py: DirectoryError and subclasses
  - crosscutting/config.get_settings (detail level)

Mapping:
  - AuthError: INVALID_CREDENTIALS / AUTHENTICATION_REQUIRED -> 401,
    ACCOUNT_DEACTIVATED -> 403
  - FormatError -> 422
  - PrivilegedCallError -> 400 / 404 / 409 by provider code
  - PersistenceError -> 503
  - any other DirectoryError -> 500
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import (
    AuthError,
    AuthReason,
    DirectoryError,
    FormatError,
    IdentityProviderError,
    PersistenceError,
    PrivilegedCallError,
    provider_message,
)
from ..crosscutting.logger import logger

PERSISTENCE_UNAVAILABLE_MESSAGE = (
    "The directory store is temporarily unavailable. Please try again."
)

_PRIVILEGED_STATUS: dict[str, tuple[int, ErrorCode]] = {
    "auth/user-not-found": (404, ErrorCode.NOT_FOUND),
    "auth/email-already-in-use": (409, ErrorCode.CONFLICT),
    "auth/weak-password": (400, ErrorCode.VALIDATION_ERROR),
    "auth/invalid-email": (400, ErrorCode.VALIDATION_ERROR),
    "auth/invalid-argument": (400, ErrorCode.VALIDATION_ERROR),
}


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


async def _handle_service_error(
    request: Request,
    *,
    exc: DirectoryError,
    code: ErrorCode,
    status_code: int,
    detail: str | None = None,
) -> JSONResponse:
    request_id = _request_id_from(request)

    logger.error(
        "service error",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "message": exc.message,
            "request_id": request_id,
        },
    )

    app_exc = AppHTTPException(
        status_code=status_code,
        code=code,
        detail=detail or exc.message,
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    # Expected outcome of a failed sign-in; no error log.
    if exc.reason == AuthReason.ACCOUNT_DEACTIVATED:
        app_exc = AppHTTPException(403, ErrorCode.ACCOUNT_DEACTIVATED, exc.message)
    else:
        app_exc = AppHTTPException(401, ErrorCode.UNAUTHORIZED, exc.message)
    return await app_exception_handler(request, app_exc)


async def format_error_handler(request: Request, exc: FormatError) -> JSONResponse:
    app_exc = AppHTTPException(422, ErrorCode.VALIDATION_ERROR, exc.message)
    return await app_exception_handler(request, app_exc)


async def persistence_error_handler(
    request: Request, exc: PersistenceError
) -> JSONResponse:
    return await _handle_service_error(
        request,
        exc=exc,
        code=ErrorCode.PERSISTENCE_ERROR,
        status_code=503,
        detail=PERSISTENCE_UNAVAILABLE_MESSAGE,
    )


async def privileged_call_error_handler(
    request: Request, exc: PrivilegedCallError
) -> JSONResponse:
    status_code, code = _PRIVILEGED_STATUS.get(
        exc.code or "", (400, ErrorCode.PRIVILEGED_CALL_FAILED)
    )
    app_exc = AppHTTPException(status_code, code, provider_message(exc.code))
    return await app_exception_handler(request, app_exc)


async def identity_provider_error_handler(
    request: Request, exc: IdentityProviderError
) -> JSONResponse:
    status_code, code = _PRIVILEGED_STATUS.get(
        exc.code, (400, ErrorCode.PRIVILEGED_CALL_FAILED)
    )
    app_exc = AppHTTPException(status_code, code, provider_message(exc.code))
    return await app_exception_handler(request, app_exc)


async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: full stack trace in the log, generic body in production."""
    request_id = _request_id_from(request)

    logger.error(
        "unhandled exception",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    detail = "Internal error." if get_settings().is_production() else str(exc)
    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Register handlers on the FastAPI app.

    Specific DirectoryError subclasses first; Exception is the fallback.
    """
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(FormatError, format_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(PrivilegedCallError, privileged_call_error_handler)
    app.add_exception_handler(IdentityProviderError, identity_provider_error_handler)
    app.add_exception_handler(DirectoryError, directory_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
