"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (APP_ENV=test, in-memory persistence)
  - Provide in-memory repositories, a local identity provider and fixed
    origin providers
  - User factory for session / admin tests

Notes:
  - Fixtures are function-scoped for isolation
  - No network and no database: origin providers are plain coroutines
"""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret-with-enough-length-0123456789")
os.environ.setdefault("LOG_JSON", "false")

import pytest  # noqa: E402

from contact_directory.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from contact_directory.domain.entities import (  # noqa: E402
    Profile,
    ProfileStatus,
    Role,
    utcnow,
)
from contact_directory.identity.origin_lookup import OriginLookup  # noqa: E402
from contact_directory.identity.tokens import TokenSettings  # noqa: E402
from contact_directory.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryAuditEventRepository,
    InMemoryContactRepository,
    InMemoryCredentialRepository,
    InMemoryProfileRepository,
    InMemoryRestrictionSettingsRepository,
    InMemorySessionRevocationRepository,
)
from contact_directory.infrastructure.services.identity_provider import (  # noqa: E402
    LocalIdentityProvider,
)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Origin providers
# ============================================================================


def _fixed_origin(address):
    """Provider answering `address` (or None)."""

    async def provider():
        return address

    provider.provider_name = f"fixed:{address}"
    return provider


def _failing_origin(message: str = "boom"):
    async def provider():
        raise RuntimeError(message)

    provider.provider_name = "failing"
    return provider


def _lookup_for(*providers) -> OriginLookup:
    return OriginLookup(list(providers))


@pytest.fixture
def fixed_origin():
    return _fixed_origin


@pytest.fixture
def failing_origin():
    return _failing_origin


@pytest.fixture
def lookup_for():
    return _lookup_for


# ============================================================================
# Repositories / services
# ============================================================================


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(
        secret="unit-test-secret-unit-test-secret",
        ttl_minutes=60,
        cookie_name="session_token",
        cookie_secure=False,
    )


@pytest.fixture
def profiles() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def credentials() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def settings_repo() -> InMemoryRestrictionSettingsRepository:
    return InMemoryRestrictionSettingsRepository()


@pytest.fixture
def contacts_repo() -> InMemoryContactRepository:
    return InMemoryContactRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditEventRepository:
    return InMemoryAuditEventRepository()


@pytest.fixture
def revocations() -> InMemorySessionRevocationRepository:
    return InMemorySessionRevocationRepository()


@pytest.fixture
def provider(credentials, token_settings, revocations) -> LocalIdentityProvider:
    return LocalIdentityProvider(credentials, token_settings, revocations=revocations)


@pytest.fixture
def make_user(provider, profiles):
    """
    Async factory: create an identity account + profile.

    Returns the PrincipalHandle (its session_token is a live session).
    """

    async def _make(
        email: str,
        password: str = "secret123",
        *,
        role: Role = Role.VIEW,
        status: ProfileStatus = ProfileStatus.ACTIVE,
        name: str = "Test User",
    ):
        handle = await provider.create_account(email, password)
        now = utcnow()
        await profiles.save_profile(
            Profile(
                uid=handle.uid,
                email=email,
                name=name,
                role=role,
                status=status,
                created_at=now,
                updated_at=now,
                created_by="test",
            )
        )
        return handle

    return _make
