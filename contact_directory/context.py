"""
Name: Log correlation context

Responsibilities:
  - Carry request-scoped correlation fields (request id, route, acting uid)
    in ContextVars so log records pick them up without extra parameters

Collaborators:
  - crosscutting/middleware.py: binds the request fields, resets at the end
  - api/dependencies.py: binds the admitted principal's uid
  - crosscutting/logger.py: merges correlation_fields() into every record
"""

from __future__ import annotations

from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_route: ContextVar[str | None] = ContextVar("route", default=None)
_principal_uid: ContextVar[str | None] = ContextVar("principal_uid", default=None)


def bind_request(request_id: str, method: str, path: str) -> None:
    _request_id.set(request_id)
    _route.set(f"{method} {path}")


def bind_principal(uid: str | None) -> None:
    _principal_uid.set(uid)


def current_request_id() -> str | None:
    return _request_id.get()


def correlation_fields() -> dict[str, str]:
    fields = {
        "request_id": _request_id.get(),
        "route": _route.get(),
        "uid": _principal_uid.get(),
    }
    return {key: value for key, value in fields.items() if value}


def reset_correlation() -> None:
    for var in (_request_id, _route, _principal_uid):
        var.set(None)
