"""
Name: Dev Seed Admin (local-only + E2E override)

Responsibilities:
  - Ensure an Active Admin account and profile exist when configured, so a
    fresh local deployment can sign in and open the admin panel

Constraints:
  - Without the E2E override it only runs with APP_ENV=local (fail fast)
  - Idempotent: an existing account is reused, an existing profile is left
    alone unless it is missing

Collaborators:
  - infrastructure/services/identity_provider.py (account store)
  - domain/repositories.py: ProfileRepository
  - api/main.py (lifespan)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Mapping, Protocol

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.entities import PrincipalHandle, Profile, ProfileStatus, Role, utcnow
from ..domain.repositories import ProfileRepository


class AccountPort(Protocol):
    """Identity account operations needed by the seed task."""

    async def find_uid(self, email: str) -> str | None: ...

    async def create_account(
        self, email: str, password: str, *, uid: str | None = None
    ) -> PrincipalHandle: ...


_ENV_FLAG_E2E_SEED_ADMIN: Final[str] = "E2E_SEED_ADMIN"
_ENV_E2E_ADMIN_EMAIL: Final[str] = "E2E_ADMIN_EMAIL"
_ENV_E2E_ADMIN_PASSWORD: Final[str] = "E2E_ADMIN_PASSWORD"

_DEFAULT_E2E_EMAIL: Final[str] = "admin@local"
_DEFAULT_E2E_PASSWORD: Final[str] = "admin123"


@dataclass(frozen=True, slots=True)
class _AdminSeedSpec:
    enabled: bool
    is_e2e: bool
    email: str = ""
    password: str = ""
    name: str = ""


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _resolve_seed_spec(settings: Settings, env: Mapping[str, str]) -> _AdminSeedSpec:
    is_e2e = _parse_bool(env.get(_ENV_FLAG_E2E_SEED_ADMIN))
    if not (settings.dev_seed_admin or is_e2e):
        return _AdminSeedSpec(enabled=False, is_e2e=is_e2e)

    if is_e2e:
        return _AdminSeedSpec(
            enabled=True,
            is_e2e=True,
            email=env.get(_ENV_E2E_ADMIN_EMAIL, _DEFAULT_E2E_EMAIL),
            password=env.get(_ENV_E2E_ADMIN_PASSWORD, _DEFAULT_E2E_PASSWORD),
            name=settings.dev_seed_admin_name,
        )

    return _AdminSeedSpec(
        enabled=True,
        is_e2e=False,
        email=(settings.dev_seed_admin_email or "").strip(),
        password=settings.dev_seed_admin_password or "",
        name=(settings.dev_seed_admin_name or "").strip() or "Administrator",
    )


def _assert_allowed_environment(settings: Settings, *, is_e2e: bool) -> None:
    if is_e2e:
        return
    env = (settings.app_env or "").strip().lower()
    if env != "local":
        raise RuntimeError(
            f"FATAL: DEV_SEED_ADMIN is enabled but APP_ENV is '{env}' (must be 'local')."
        )


async def ensure_dev_admin(
    settings: Settings,
    *,
    accounts: AccountPort,
    profiles: ProfileRepository,
    env: Mapping[str, str],
) -> Profile | None:
    spec = _resolve_seed_spec(settings, env)
    if not spec.enabled:
        return None

    _assert_allowed_environment(settings, is_e2e=spec.is_e2e)

    if not spec.email or not spec.password:
        raise ValueError("Dev seed admin is enabled but email/password are empty")

    logger.info(
        "dev seed admin: ensuring admin account",
        extra={"email": spec.email, "is_e2e": spec.is_e2e},
    )

    existing = await profiles.find_by_email(spec.email)
    if existing is not None and not existing.is_deleted:
        logger.info("dev seed admin: profile exists; skipping", extra={"email": spec.email})
        return existing

    uid = await accounts.find_uid(spec.email)
    if uid is None:
        handle = await accounts.create_account(
            spec.email, spec.password, uid=existing.uid if existing else None
        )
        uid = handle.uid

    now = utcnow()
    profile = Profile(
        uid=uid,
        email=spec.email,
        name=spec.name,
        role=Role.ADMIN,
        status=ProfileStatus.ACTIVE,
        created_at=now,
        updated_at=now,
        created_by="system",
    )
    await profiles.save_profile(profile)
    logger.info("dev seed admin: admin ready", extra={"uid": uid})
    return profile
