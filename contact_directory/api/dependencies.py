"""
Name: Request dependencies (session + route guard + capability gates)

Responsibilities:
  - Build the per-request Identity Session from the ambient token and attach
    a Route Guard to it
  - Map the guard's admission decision to HTTP errors
  - Enforce permission predicates server-side (require_capability)

Collaborators:
  - container.py: session, settings store, access resolver
  - identity/route_guard.py, identity/permissions.py
  - api/*_routes.py

Mapping:
  REDIRECT_LOGIN -> 401 UNAUTHORIZED
  REDIRECT_RESTRICTED -> 403 ACCESS_RESTRICTED
  PENDING -> 503 (not expected once the session has started)
  missing capability -> 403 FORBIDDEN
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Callable

from fastapi import Depends, Request

from ..container import (
    build_access_resolver,
    build_identity_session,
    get_restriction_settings_store,
)
from ..context import bind_principal
from ..crosscutting.error_responses import (
    access_restricted,
    forbidden,
    service_unavailable,
    unauthorized,
)
from ..domain.entities import Principal
from ..identity.permissions import Capability, has_capability
from ..identity.route_guard import Admission, RouteGuard
from ..identity.session import IdentitySession
from ..identity.tokens import extract_session_token


@dataclass
class SessionContext:
    session: IdentitySession
    guard: RouteGuard

    @property
    def principal(self) -> Principal | None:
        return self.session.principal

    @property
    def decision(self) -> Admission:
        return self.guard.decision


def open_session_context(request: Request, session_token: str | None) -> SessionContext:
    session = build_identity_session(session_token)
    guard = RouteGuard(
        session, get_restriction_settings_store(), build_access_resolver(request)
    )
    guard.attach()
    return SessionContext(session=session, guard=guard)


def close_session_context(context: SessionContext) -> None:
    context.guard.detach()
    context.session.close()


async def get_session_context(request: Request) -> AsyncIterator[SessionContext]:
    """Session resolved from the bearer header or cookie; settled on yield."""
    context = open_session_context(request, extract_session_token(request))
    try:
        await context.session.start()
        yield context
    finally:
        close_session_context(context)


def admit(context: SessionContext) -> Principal:
    decision = context.decision
    if decision == Admission.REDIRECT_LOGIN:
        raise unauthorized()
    if decision == Admission.REDIRECT_RESTRICTED:
        raise access_restricted()
    if decision == Admission.PENDING or context.principal is None:
        raise service_unavailable("session")
    return context.principal


async def require_principal(
    request: Request,
    context: SessionContext = Depends(get_session_context),
) -> Principal:
    principal = admit(context)
    request.state.principal = principal
    bind_principal(principal.uid)
    return principal


def require_capability(capability: Capability) -> Callable:
    """Dependency factory: admitted principal holding `capability`."""

    async def dependency(principal: Principal = Depends(require_principal)) -> Principal:
        if not has_capability(principal.role, capability):
            raise forbidden("Insufficient role.")
        return principal

    return dependency
