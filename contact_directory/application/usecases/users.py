"""
Name: User administration use cases

Responsibilities:
  - List, create, update (role / password), activate / deactivate and delete
    user accounts on behalf of an administrator
  - Create identity accounts in an isolated secondary provider context so the
    administrator's own session is never touched
  - Reactivate a Deleted profile instead of creating a second record for the
    same email

Collaborators:
  - domain/repositories.py: ProfileRepository, AuditEventRepository
  - domain/services.py: IdentityProvider, PrivilegedFunctions
  - audit.py

Error mapping:
  - VALIDATION_ERROR: missing fields, short password, invalid email
  - NOT_FOUND: unknown (or Deleted) profile
  - CONFLICT: email already registered to a non-Deleted profile
  - PRIVILEGED_CALL_FAILED: privileged call failed without a known code

Notes:
  - Admin gating happens in the API layer; these use cases trust their actor
  - Identity account and profile writes are not transactional
"""

from __future__ import annotations

from dataclasses import dataclass

from ...audit import emit_audit_event
from ...crosscutting.exceptions import (
    IdentityProviderError,
    PrivilegedCallError,
    provider_message,
)
from ...crosscutting.logger import logger
from ...domain.entities import Principal, Profile, ProfileStatus, Role, utcnow
from ...domain.repositories import AuditEventRepository, ProfileRepository
from ...domain.services import IdentityProvider, PrivilegedFunctions
from .results import Result, UseCaseErrorCode

_CODE_TO_ERROR: dict[str, UseCaseErrorCode] = {
    "auth/email-already-in-use": UseCaseErrorCode.CONFLICT,
    "auth/user-not-found": UseCaseErrorCode.NOT_FOUND,
    "auth/invalid-email": UseCaseErrorCode.VALIDATION_ERROR,
    "auth/weak-password": UseCaseErrorCode.VALIDATION_ERROR,
    "auth/invalid-argument": UseCaseErrorCode.VALIDATION_ERROR,
}


def _provider_failure(code: str | None, message: str | None = None) -> Result:
    return Result.failure(
        _CODE_TO_ERROR.get(code or "", UseCaseErrorCode.PRIVILEGED_CALL_FAILED),
        message or provider_message(code),
        provider_code=code,
    )


def _password_too_short(password: str, min_length: int) -> Result | None:
    if len(password) < min_length:
        return Result.failure(
            UseCaseErrorCode.VALIDATION_ERROR,
            f"Password must be at least {min_length} characters long",
        )
    return None


async def _load_live_profile(profiles: ProfileRepository, uid: str) -> Profile | None:
    profile = await profiles.get_profile(uid)
    if profile is None or profile.is_deleted:
        return None
    return profile


def _not_found(uid: str) -> Result:
    return Result.failure(UseCaseErrorCode.NOT_FOUND, f"User '{uid}' not found")


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------
class ListUsersUseCase:
    def __init__(self, profiles: ProfileRepository):
        self._profiles = profiles

    async def execute(self) -> Result[list[Profile]]:
        profiles = await self._profiles.list_profiles(include_deleted=False)
        return Result.success(sorted(profiles, key=lambda p: p.email.lower()))


# ---------------------------------------------------------------------------
# Create (or reactivate)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CreateUserInput:
    email: str
    name: str
    password: str
    role: Role
    actor: Principal


class CreateUserUseCase:
    """
    Create an account + Active profile.

    When the email belongs to a Deleted profile, the identity account is
    recreated under that profile's uid and the same record is reactivated.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        provider: IdentityProvider,
        audit_repo: AuditEventRepository | None = None,
        *,
        min_password_length: int = 6,
    ):
        self._profiles = profiles
        self._provider = provider
        self._audit_repo = audit_repo
        self._min_password_length = min_password_length

    async def execute(self, data: CreateUserInput) -> Result[Profile]:
        email = (data.email or "").strip()
        name = (data.name or "").strip()
        password = (data.password or "").strip()

        if not email or not name or not password:
            return Result.failure(
                UseCaseErrorCode.VALIDATION_ERROR,
                "Email, full name, and password are required",
            )
        if short := _password_too_short(password, self._min_password_length):
            return short

        existing = await self._profiles.find_by_email(email)
        if existing is not None and not existing.is_deleted:
            return Result.failure(
                UseCaseErrorCode.CONFLICT, provider_message("auth/email-already-in-use")
            )

        reuse_uid = existing.uid if existing is not None else None
        try:
            async with self._provider.secondary_context() as secondary:
                handle = await secondary.create_account(email, password, uid=reuse_uid)
        except IdentityProviderError as exc:
            logger.info("account creation rejected", extra={"code": exc.code})
            return _provider_failure(exc.code)

        now = utcnow()
        profile = Profile(
            uid=handle.uid,
            email=email,
            name=name,
            role=data.role,
            status=ProfileStatus.ACTIVE,
            created_at=existing.created_at if existing and existing.created_at else now,
            updated_at=now,
            created_by=data.actor.uid,
        )
        await self._profiles.save_profile(profile)

        action = "users.reactivate" if existing is not None else "users.create"
        await emit_audit_event(
            self._audit_repo,
            action=action,
            principal=data.actor,
            target_id=profile.uid,
            metadata={"role": profile.role.value},
        )
        return Result.success(profile)


# ---------------------------------------------------------------------------
# Update (role / password)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class UpdateUserInput:
    uid: str
    actor: Principal
    role: Role | None = None
    password: str | None = None


class UpdateUserUseCase:
    def __init__(
        self,
        profiles: ProfileRepository,
        privileged: PrivilegedFunctions,
        audit_repo: AuditEventRepository | None = None,
        *,
        min_password_length: int = 6,
    ):
        self._profiles = profiles
        self._privileged = privileged
        self._audit_repo = audit_repo
        self._min_password_length = min_password_length

    async def execute(self, data: UpdateUserInput) -> Result[Profile]:
        profile = await _load_live_profile(self._profiles, data.uid)
        if profile is None:
            return _not_found(data.uid)

        changed: list[str] = []

        # Privileged password call runs before the role write.
        if data.password:
            if short := _password_too_short(data.password, self._min_password_length):
                return short
            try:
                await self._privileged.update_user_password(profile.email, data.password)
            except PrivilegedCallError as exc:
                return _provider_failure(exc.code, exc.message)
            changed.append("password")

        if data.role is not None and data.role != profile.role:
            updated = await self._profiles.update_profile(profile.uid, role=data.role)
            if updated is None:
                return _not_found(data.uid)
            profile = updated
            changed.append("role")

        if changed:
            await emit_audit_event(
                self._audit_repo,
                action="users.update",
                principal=data.actor,
                target_id=profile.uid,
                metadata={"fields": changed, "role": profile.role.value},
            )
        return Result.success(profile)


# ---------------------------------------------------------------------------
# Activate / deactivate
# ---------------------------------------------------------------------------
class SetUserStatusUseCase:
    def __init__(
        self,
        profiles: ProfileRepository,
        audit_repo: AuditEventRepository | None = None,
    ):
        self._profiles = profiles
        self._audit_repo = audit_repo

    async def execute(
        self, uid: str, status: ProfileStatus, *, actor: Principal
    ) -> Result[Profile]:
        if status == ProfileStatus.DELETED:
            return Result.failure(
                UseCaseErrorCode.VALIDATION_ERROR,
                "Use the delete operation to remove a user",
            )

        profile = await _load_live_profile(self._profiles, uid)
        if profile is None:
            return _not_found(uid)

        if profile.status == status:
            return Result.success(profile)

        updated = await self._profiles.update_profile(uid, status=status)
        if updated is None:
            return _not_found(uid)

        action = "users.activate" if status == ProfileStatus.ACTIVE else "users.deactivate"
        await emit_audit_event(
            self._audit_repo, action=action, principal=actor, target_id=uid
        )
        return Result.success(updated)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------
class DeleteUserUseCase:
    def __init__(
        self,
        profiles: ProfileRepository,
        privileged: PrivilegedFunctions,
        audit_repo: AuditEventRepository | None = None,
    ):
        self._profiles = profiles
        self._privileged = privileged
        self._audit_repo = audit_repo

    async def execute(self, uid: str, *, actor: Principal) -> Result[None]:
        profile = await _load_live_profile(self._profiles, uid)
        if profile is None:
            return _not_found(uid)

        if not profile.email.strip():
            return Result.failure(
                UseCaseErrorCode.VALIDATION_ERROR,
                "User email is missing. Cannot delete user.",
            )

        try:
            await self._privileged.delete_user(profile.email)
        except PrivilegedCallError as exc:
            return _provider_failure(exc.code, exc.message)

        await emit_audit_event(
            self._audit_repo, action="users.delete", principal=actor, target_id=uid
        )
        return Result.success(None)
