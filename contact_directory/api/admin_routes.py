"""
Name: Admin routes (IP restrictions + user administration)

Responsibilities:
  - Read / update the IP restriction singleton and preview range parsing
  - List, create (or reactivate), update, activate / deactivate and delete
    users through the user administration use cases
  - Map use case results to RFC 7807 errors (api/result_errors.py)

Collaborators:
  - application/restriction_settings.py: RestrictionSettingsStore
  - application/usecases/users.py
  - api/dependencies.py: require_capability(ADMINISTER)
  - audit.emit_audit_event

Notes:
  - Thin controller: no business rules here
  - Invalid range specs in an update are dropped by the store and echoed back
    in `rejected_ranges`
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..application.restriction_settings import RestrictionSettingsStore
from ..application.usecases.users import (
    CreateUserInput,
    CreateUserUseCase,
    DeleteUserUseCase,
    ListUsersUseCase,
    SetUserStatusUseCase,
    UpdateUserInput,
    UpdateUserUseCase,
)
from ..audit import emit_audit_event
from ..container import (
    get_audit_repository,
    get_create_user_use_case,
    get_delete_user_use_case,
    get_list_users_use_case,
    get_restriction_settings_store,
    get_set_user_status_use_case,
    get_update_user_use_case,
)
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..domain.entities import (
    RESTRICTION_SETTINGS_ID,
    Principal,
    ProfileStatus,
    RestrictionSettings,
    Role,
)
from ..domain.repositories import AuditEventRepository
from ..identity.ip_classifier import format_range_list, is_valid_range_spec, split_range_list
from ..identity.permissions import Capability
from .auth_routes import ProfileResponse, to_profile_response
from .dependencies import require_capability
from .result_errors import raise_for_error

router = APIRouter(prefix="/admin", tags=["admin"], responses=OPENAPI_ERROR_RESPONSES)

require_admin = require_capability(Capability.ADMINISTER)


# -----------------------------------------------------------------------------
# DTOs
# -----------------------------------------------------------------------------


class RestrictionSettingsResponse(BaseModel):
    enabled: bool
    allowed_ranges: list[str]
    description: str
    updated_at: datetime | None = None
    updated_by: str | None = None
    rejected_ranges: list[str] = Field(default_factory=list)


class UpdateRestrictionsRequest(BaseModel):
    enabled: bool | None = None
    allowed_ranges: list[str] | None = None
    description: str | None = Field(None, max_length=1024)


class ParseRangesRequest(BaseModel):
    text: str = Field("", max_length=65536)


class ParseRangesResponse(BaseModel):
    accepted: list[str]
    rejected: list[str]
    normalized_text: str


class CreateUserRequest(BaseModel):
    email: str = Field(..., max_length=320)
    name: str = Field(..., max_length=255)
    password: str = Field(..., max_length=512)
    role: Role = Role.VIEW


class UpdateUserRequest(BaseModel):
    role: Role | None = None
    password: str | None = Field(None, max_length=512)


class SetStatusRequest(BaseModel):
    status: ProfileStatus


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _to_settings_response(
    settings: RestrictionSettings, rejected: list[str] | None = None
) -> RestrictionSettingsResponse:
    return RestrictionSettingsResponse(
        enabled=settings.enabled,
        allowed_ranges=list(settings.allowed_ranges),
        description=settings.description,
        updated_at=settings.updated_at,
        updated_by=settings.updated_by,
        rejected_ranges=rejected or [],
    )


# -----------------------------------------------------------------------------
# IP restrictions
# -----------------------------------------------------------------------------


@router.get("/restrictions", response_model=RestrictionSettingsResponse)
async def get_restrictions(
    principal: Principal = Depends(require_admin),
    store: RestrictionSettingsStore = Depends(get_restriction_settings_store),
):
    settings = await store.load(reader_id=principal.uid)
    return _to_settings_response(settings)


@router.put("/restrictions", response_model=RestrictionSettingsResponse)
async def update_restrictions(
    req: UpdateRestrictionsRequest,
    principal: Principal = Depends(require_admin),
    store: RestrictionSettingsStore = Depends(get_restriction_settings_store),
    audit_repo: AuditEventRepository = Depends(get_audit_repository),
):
    changes = req.model_dump(exclude_none=True)
    rejected = [
        r for r in (req.allowed_ranges or []) if r.strip() and not is_valid_range_spec(r.strip())
    ]

    settings = await store.update(changes, actor=principal.uid)

    await emit_audit_event(
        audit_repo,
        action="restrictions.update",
        principal=principal,
        target_id=RESTRICTION_SETTINGS_ID,
        metadata={
            "enabled": settings.enabled,
            "range_count": len(settings.allowed_ranges),
            "rejected_count": len(rejected),
        },
    )
    return _to_settings_response(settings, rejected)


@router.post("/restrictions/parse", response_model=ParseRangesResponse)
async def parse_restrictions(
    req: ParseRangesRequest,
    _principal: Principal = Depends(require_admin),
):
    """Preview how newline-separated admin text splits into range specs."""
    accepted, rejected = split_range_list(req.text)
    return ParseRangesResponse(
        accepted=accepted,
        rejected=rejected,
        normalized_text=format_range_list(accepted),
    )


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


@router.get("/users", response_model=list[ProfileResponse])
async def list_users(
    _principal: Principal = Depends(require_admin),
    use_case: ListUsersUseCase = Depends(get_list_users_use_case),
):
    result = await use_case.execute()
    return [to_profile_response(p) for p in result.value]


@router.post("/users", response_model=ProfileResponse, status_code=201)
async def create_user(
    req: CreateUserRequest,
    principal: Principal = Depends(require_admin),
    use_case: CreateUserUseCase = Depends(get_create_user_use_case),
):
    result = await use_case.execute(
        CreateUserInput(
            email=req.email,
            name=req.name,
            password=req.password,
            role=req.role,
            actor=principal,
        )
    )
    raise_for_error(result)
    return to_profile_response(result.value)


@router.patch("/users/{uid}", response_model=ProfileResponse)
async def update_user(
    uid: str,
    req: UpdateUserRequest,
    principal: Principal = Depends(require_admin),
    use_case: UpdateUserUseCase = Depends(get_update_user_use_case),
):
    result = await use_case.execute(
        UpdateUserInput(uid=uid, actor=principal, role=req.role, password=req.password)
    )
    raise_for_error(result)
    return to_profile_response(result.value)


@router.post("/users/{uid}/status", response_model=ProfileResponse)
async def set_user_status(
    uid: str,
    req: SetStatusRequest,
    principal: Principal = Depends(require_admin),
    use_case: SetUserStatusUseCase = Depends(get_set_user_status_use_case),
):
    result = await use_case.execute(uid, req.status, actor=principal)
    raise_for_error(result)
    return to_profile_response(result.value)


@router.delete("/users/{uid}")
async def delete_user(
    uid: str,
    principal: Principal = Depends(require_admin),
    use_case: DeleteUserUseCase = Depends(get_delete_user_use_case),
):
    result = await use_case.execute(uid, actor=principal)
    raise_for_error(result)
    return {"ok": True}


__all__ = ["router"]
