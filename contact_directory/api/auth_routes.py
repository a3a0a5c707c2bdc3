"""
Name: Authentication routes (login / logout / me / access)

Responsibilities:
  - Sign in through the Identity Session and hand out the session token
    (JSON body + httpOnly cookie)
  - Sign out and clear the cookie (idempotent)
  - Report the current principal and its admission decision + capabilities

Collaborators:
  - api/dependencies.py: session context, guard, require_principal
  - identity/tokens.py: cookie settings
  - audit.emit_audit_event (best-effort)

Notes:
  - A successful login of a non-admin from a non-allowed network still
    returns the token, with admission=redirect_restricted; every protected
    endpoint then answers 403 ACCESS_RESTRICTED
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field, field_validator

from ..audit import emit_audit_event
from ..container import get_audit_repository
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..domain.entities import Principal, ProfileStatus, Role
from ..domain.repositories import AuditEventRepository
from ..identity.permissions import capabilities_for
from ..identity.route_guard import Admission
from ..identity.tokens import extract_session_token, get_token_settings
from .dependencies import (
    SessionContext,
    close_session_context,
    get_session_context,
    open_session_context,
    require_principal,
)

router = APIRouter(prefix="/auth", tags=["auth"], responses=OPENAPI_ERROR_RESPONSES)


# -----------------------------------------------------------------------------
# DTOs
# -----------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=512)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip()


class ProfileResponse(BaseModel):
    uid: str
    email: str
    name: str
    role: Role
    status: ProfileStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: ProfileResponse
    admission: Admission
    restricted: bool


class AccessResponse(BaseModel):
    authenticated: bool
    admission: Admission
    restricted: bool
    role: Role | None = None
    capabilities: list[str]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def to_profile_response(principal_or_profile) -> ProfileResponse:
    profile = getattr(principal_or_profile, "profile", principal_or_profile)
    return ProfileResponse(
        uid=profile.uid,
        email=profile.email,
        name=profile.name,
        role=profile.role,
        status=profile.status,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
        created_by=profile.created_by,
    )


def _set_session_cookie(response: Response, token: str, expires_in: int) -> None:
    settings = get_token_settings()
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=expires_in,
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    settings = get_token_settings()
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        samesite="lax",
        secure=settings.cookie_secure,
    )


def _capabilities(principal: Principal | None) -> list[str]:
    role = principal.role if principal else None
    return sorted(c.value for c in capabilities_for(role))


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
async def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    audit_repo: AuditEventRepository = Depends(get_audit_repository),
):
    """
    Sign in with email + password.

    Failures answer with a generic message (401), or 403 ACCOUNT_DEACTIVATED
    for an Inactive profile.
    """
    context = open_session_context(request, None)
    try:
        await context.session.start()
        principal = await context.session.login(req.email, req.password)
        admission = context.decision
        restricted = context.guard.access.restricted
    finally:
        close_session_context(context)

    expires_in = get_token_settings().ttl_minutes * 60
    _set_session_cookie(response, principal.handle.session_token, expires_in)

    await emit_audit_event(
        audit_repo,
        action="auth.login",
        principal=principal,
        target_id=principal.uid,
        metadata={"admission": admission.value},
    )

    return LoginResponse(
        access_token=principal.handle.session_token,
        expires_in=expires_in,
        user=to_profile_response(principal),
        admission=admission,
        restricted=restricted,
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    audit_repo: AuditEventRepository = Depends(get_audit_repository),
):
    """End the ambient session (if any) and clear the cookie."""
    context = open_session_context(request, extract_session_token(request))
    try:
        await context.session.start()
        principal = context.principal
        await context.session.logout()
    finally:
        close_session_context(context)

    _clear_session_cookie(response)
    if principal is not None:
        await emit_audit_event(
            audit_repo, action="auth.logout", principal=principal, target_id=principal.uid
        )
    return {"ok": True}


@router.get("/me", response_model=ProfileResponse)
async def me(principal: Principal = Depends(require_principal)):
    return to_profile_response(principal)


@router.get("/access", response_model=AccessResponse)
async def access(context: SessionContext = Depends(get_session_context)):
    """Admission decision and capabilities of the ambient session (never 401)."""
    principal = context.principal if context.session.snapshot.is_authenticated else None
    return AccessResponse(
        authenticated=principal is not None,
        admission=context.decision,
        restricted=context.guard.access.restricted,
        role=principal.role if principal else None,
        capabilities=_capabilities(principal),
    )


__all__ = ["router"]
