"""
Name: Standard Error Responses (RFC 7807 / Problem Details)

Responsibilities:
  - Error code catalogue (ErrorCode) the front end can switch on
  - RFC 7807 payload model (ErrorDetail)
  - Factories for frequent HTTP errors
  - FastAPI handler returning application/problem+json

Collaborators:
  - crosscutting/middleware.py (request_id)
  - api/exception_handlers.py (maps internal errors)
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(str, Enum):
    # 4xx
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    ACCESS_RESTRICTED = "ACCESS_RESTRICTED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PRIVILEGED_CALL_FAILED = "PRIVILEGED_CALL_FAILED"

    # 5xx
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class ErrorDetail(BaseModel):
    """
    RFC 7807 model (Problem Details).

    Extra fields:
    - code: stable error code for clients
    - errors: optional list of details (e.g. [{"field": "x", "msg": "..."}])
    """

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"

_OPENAPI_ERROR_CONTENT = {
    PROBLEM_JSON_MEDIA_TYPE: {"schema": {"$ref": "#/components/schemas/ErrorDetail"}}
}

OPENAPI_ERROR_RESPONSES = {
    str(status): {
        "description": f"{description} (RFC7807)",
        "model": ErrorDetail,
        "content": _OPENAPI_ERROR_CONTENT,
    }
    for status, description in (
        (400, "Bad Request"),
        (401, "Unauthorized"),
        (403, "Forbidden"),
        (404, "Not Found"),
        (409, "Conflict"),
        (422, "Validation Error"),
        (503, "Service Unavailable"),
    )
}


class AppHTTPException(HTTPException):
    """HTTPException carrying a stable ErrorCode and optional errors[]."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.errors = errors

    @property
    def problem_type(self) -> str:
        return f"about:blank/{self.code.value.lower()}"

    @property
    def title(self) -> str:
        return self.code.value.replace("_", " ").title()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def bad_request(detail: str) -> AppHTTPException:
    return AppHTTPException(400, ErrorCode.VALIDATION_ERROR, detail)


def conflict(detail: str) -> AppHTTPException:
    return AppHTTPException(409, ErrorCode.CONFLICT, detail)


def unauthorized(detail: str = "Authentication required.") -> AppHTTPException:
    return AppHTTPException(401, ErrorCode.UNAUTHORIZED, detail)


def forbidden(detail: str = "Access denied.") -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.FORBIDDEN, detail)


def access_restricted(
    detail: str = "Access from your network location is not allowed.",
) -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.ACCESS_RESTRICTED, detail)


def service_unavailable(service: str) -> AppHTTPException:
    detail = f"Service temporarily unavailable: {service}"
    return AppHTTPException(503, ErrorCode.SERVICE_UNAVAILABLE, detail)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def problem_body(exc: AppHTTPException, instance: str, request_id: str | None = None) -> dict:
    """Serialise an AppHTTPException as a problem+json document.

    The request id rides along in ``errors`` so clients can quote it.
    """
    extra = list(exc.errors or [])
    if request_id:
        extra.append({"request_id": request_id})
    problem = ErrorDetail(
        type=exc.problem_type,
        title=exc.title,
        status=exc.status_code,
        detail=str(exc.detail),
        code=exc.code,
        instance=instance,
        errors=extra or None,
    )
    return problem.model_dump(mode="json", exclude_none=True)


async def app_exception_handler(request: Request, exc: AppHTTPException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=problem_body(exc, str(request.url), request_id),
        headers=exc.headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
