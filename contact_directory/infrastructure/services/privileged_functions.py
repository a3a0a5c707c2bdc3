"""
Name: LocalPrivilegedFunctions

Responsibilities:
  - Server-side privileged calls: set another user's password, delete a user
  - Translate provider failures into PrivilegedCallError (code + message)

Collaborators:
  - infrastructure/services/identity_provider.py (account store + revocation)
  - domain/repositories.py: ProfileRepository (Deleted transition)
  - application/usecases/users.py (caller)

Constraints:
  - Accounts are addressed by email, the profile's unique key
  - delete_user removes the identity account first, then marks the profile
    Deleted; the two writes are not transactional
"""

from __future__ import annotations

from ...crosscutting.exceptions import (
    IdentityProviderError,
    PrivilegedCallError,
    provider_message,
)
from ...crosscutting.logger import logger
from ...domain.entities import ProfileStatus
from ...domain.repositories import ProfileRepository
from .identity_provider import LocalIdentityProvider


def _failure(code: str) -> PrivilegedCallError:
    return PrivilegedCallError(provider_message(code), code=code)


class LocalPrivilegedFunctions:
    def __init__(self, provider: LocalIdentityProvider, profiles: ProfileRepository):
        self._provider = provider
        self._profiles = profiles

    async def update_user_password(self, email: str, new_password: str) -> None:
        if not (email or "").strip() or not new_password:
            raise _failure("auth/invalid-argument")

        uid = await self._provider.find_uid(email)
        if uid is None:
            raise _failure("auth/user-not-found")

        try:
            await self._provider.set_password(uid, new_password)
        except IdentityProviderError as exc:
            raise _failure(exc.code) from exc

        logger.info("password updated by privileged call", extra={"uid": uid})

    async def delete_user(self, email: str) -> None:
        if not (email or "").strip():
            raise _failure("auth/invalid-argument")

        profile = await self._profiles.find_by_email(email)
        uid = await self._provider.find_uid(email)
        if uid is None and profile is None:
            raise _failure("auth/user-not-found")

        if uid is not None:
            await self._provider.delete_account(uid)

        if profile is not None:
            await self._profiles.update_profile(
                profile.uid, status=ProfileStatus.DELETED
            )

        logger.info(
            "user deleted by privileged call",
            extra={"uid": uid or (profile.uid if profile else None)},
        )
