"""
Name: Composition Root (manual DI)

Responsibilities:
  - Build repositories, services and use cases from Settings
  - Keep process singletons (repositories, identity provider, settings store)
    behind lru_cache
  - Build the per-request pieces: origin lookup, access resolver, session

Collaborators:
  - crosscutting/config.py
  - domain/* ports, infrastructure/* adapters, application/* use cases
  - api/dependencies.py (FastAPI Depends wrappers)

Notes:
  - No business logic here
  - PERSISTENCE_BACKEND picks the in-memory or PostgreSQL adapter set
"""

from __future__ import annotations

from functools import lru_cache

from starlette.requests import Request

from .application.restriction_settings import RestrictionSettingsStore
from .application.usecases.contacts import ContactDirectory
from .application.usecases.users import (
    CreateUserUseCase,
    DeleteUserUseCase,
    ListUsersUseCase,
    SetUserStatusUseCase,
    UpdateUserUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    AuditEventRepository,
    ContactRepository,
    CredentialRepository,
    ProfileRepository,
    RestrictionSettingsRepository,
    SessionRevocationRepository,
)
from .identity.access_resolver import AccessResolver
from .identity.origin_lookup import OriginLookup
from .identity.session import IdentitySession
from .identity.tokens import get_token_settings
from .infrastructure.repositories import in_memory
from .infrastructure.services.identity_provider import LocalIdentityProvider
from .infrastructure.services.origin_providers import (
    external_providers,
    request_providers,
)
from .infrastructure.services.privileged_functions import LocalPrivilegedFunctions


def _use_postgres() -> bool:
    return get_settings().persistence_backend == "postgres"


def _pool():
    from .infrastructure.db.pool import get_pool

    return get_pool()


# ---------------------------------------------------------------------------
# Repositories (singletons)
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_profile_repository() -> ProfileRepository:
    if _use_postgres():
        from .infrastructure.repositories.postgres import PostgresProfileRepository

        return PostgresProfileRepository(_pool())
    return in_memory.InMemoryProfileRepository()


@lru_cache(maxsize=1)
def get_credential_repository() -> CredentialRepository:
    if _use_postgres():
        from .infrastructure.repositories.postgres import PostgresCredentialRepository

        return PostgresCredentialRepository(_pool())
    return in_memory.InMemoryCredentialRepository()


@lru_cache(maxsize=1)
def get_restriction_settings_repository() -> RestrictionSettingsRepository:
    if _use_postgres():
        from .infrastructure.repositories.postgres import (
            PostgresRestrictionSettingsRepository,
        )

        return PostgresRestrictionSettingsRepository(_pool())
    return in_memory.InMemoryRestrictionSettingsRepository()


@lru_cache(maxsize=1)
def get_session_revocation_repository() -> SessionRevocationRepository:
    if _use_postgres():
        from .infrastructure.repositories.postgres import (
            PostgresSessionRevocationRepository,
        )

        return PostgresSessionRevocationRepository(_pool())
    return in_memory.InMemorySessionRevocationRepository()


@lru_cache(maxsize=1)
def get_contact_repository() -> ContactRepository:
    if _use_postgres():
        from .infrastructure.repositories.postgres import PostgresContactRepository

        return PostgresContactRepository(_pool())
    return in_memory.InMemoryContactRepository()


@lru_cache(maxsize=1)
def get_audit_repository() -> AuditEventRepository:
    if _use_postgres():
        from .infrastructure.repositories.postgres import PostgresAuditEventRepository

        return PostgresAuditEventRepository(_pool())
    return in_memory.InMemoryAuditEventRepository()


# ---------------------------------------------------------------------------
# Services (singletons)
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_identity_provider() -> LocalIdentityProvider:
    return LocalIdentityProvider(
        get_credential_repository(),
        get_token_settings(),
        revocations=get_session_revocation_repository(),
        min_password_length=get_settings().min_password_length,
    )


@lru_cache(maxsize=1)
def get_privileged_functions() -> LocalPrivilegedFunctions:
    return LocalPrivilegedFunctions(get_identity_provider(), get_profile_repository())


@lru_cache(maxsize=1)
def get_restriction_settings_store() -> RestrictionSettingsStore:
    return RestrictionSettingsStore(get_restriction_settings_repository())


# ---------------------------------------------------------------------------
# Per-request pieces
# ---------------------------------------------------------------------------
def build_origin_lookup(request: Request) -> OriginLookup:
    settings = get_settings()
    if settings.origin_lookup_mode == "external":
        return OriginLookup(
            external_providers(timeout_seconds=settings.origin_lookup_timeout_seconds)
        )
    return OriginLookup(
        request_providers(request, trust_forwarded=settings.trust_forwarded_headers)
    )


def build_access_resolver(request: Request) -> AccessResolver:
    return AccessResolver(build_origin_lookup(request))


def build_identity_session(session_token: str | None) -> IdentitySession:
    return IdentitySession(
        get_identity_provider(),
        get_profile_repository(),
        session_token=session_token,
    )


# ---------------------------------------------------------------------------
# Use cases
# ---------------------------------------------------------------------------
def get_list_users_use_case() -> ListUsersUseCase:
    return ListUsersUseCase(get_profile_repository())


def get_create_user_use_case() -> CreateUserUseCase:
    return CreateUserUseCase(
        get_profile_repository(),
        get_identity_provider(),
        get_audit_repository(),
        min_password_length=get_settings().min_password_length,
    )


def get_update_user_use_case() -> UpdateUserUseCase:
    return UpdateUserUseCase(
        get_profile_repository(),
        get_privileged_functions(),
        get_audit_repository(),
        min_password_length=get_settings().min_password_length,
    )


def get_set_user_status_use_case() -> SetUserStatusUseCase:
    return SetUserStatusUseCase(get_profile_repository(), get_audit_repository())


def get_delete_user_use_case() -> DeleteUserUseCase:
    return DeleteUserUseCase(
        get_profile_repository(), get_privileged_functions(), get_audit_repository()
    )


def get_contact_directory() -> ContactDirectory:
    return ContactDirectory(get_contact_repository(), get_audit_repository())


def reset_container() -> None:
    """Drop every cached singleton (tests, settings reload)."""
    for factory in (
        get_profile_repository,
        get_credential_repository,
        get_restriction_settings_repository,
        get_session_revocation_repository,
        get_contact_repository,
        get_audit_repository,
        get_identity_provider,
        get_privileged_functions,
        get_restriction_settings_store,
    ):
        factory.cache_clear()
