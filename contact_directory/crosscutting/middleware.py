"""
Name: Request context middleware

Responsibilities:
  - Take X-Request-Id from the client (bounded) or mint one; echo it back
  - Bind log correlation fields for the duration of the request
  - Record one metrics sample and one access-log line per request

Collaborators:
  - context.py, crosscutting/logger.py, crosscutting/metrics.py

Notes:
  - Metrics use the matched route template (`/contacts/{contact_id}`), or
    "unmatched" for 404s on unknown paths
"""

from __future__ import annotations

import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..context import bind_request, reset_correlation
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"
_UNLOGGED_PATHS = frozenset({"/healthz", "/metrics"})


def _request_id(request: Request) -> str:
    candidate = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if 0 < len(candidate) <= 128 and candidate.isprintable():
        return candidate
    return uuid4().hex


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id
        bind_request(request_id, request.method, request.url.path)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            elapsed = time.perf_counter() - started
            record_request_metrics(
                _route_template(request), request.method, status_code, elapsed
            )
            if request.url.path not in _UNLOGGED_PATHS:
                principal = getattr(request.state, "principal", None)
                logger.info(
                    "request handled",
                    extra={
                        "status_code": status_code,
                        "duration_ms": round(elapsed * 1000, 1),
                        "actor_uid": principal.uid if principal else None,
                    },
                )
            reset_correlation()
