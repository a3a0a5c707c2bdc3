"""Dev seed admin: environment gating, idempotency and E2E override."""

import pytest

from contact_directory.application.dev_seed_admin import ensure_dev_admin
from contact_directory.crosscutting.config import Settings
from contact_directory.domain.entities import ProfileStatus, Role

pytestmark = pytest.mark.unit


def _settings(**overrides) -> Settings:
    values = {
        "app_env": "local",
        "dev_seed_admin": True,
        "dev_seed_admin_email": "seed@example.com",
        "dev_seed_admin_password": "seedpass1",
        "dev_seed_admin_name": "Seed Admin",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_disabled_does_nothing(provider, profiles):
    result = await ensure_dev_admin(
        _settings(dev_seed_admin=False), accounts=provider, profiles=profiles, env={}
    )
    assert result is None
    assert await profiles.list_profiles() == []


@pytest.mark.asyncio
async def test_refuses_outside_local(provider, profiles):
    with pytest.raises(RuntimeError, match="APP_ENV"):
        await ensure_dev_admin(
            _settings(app_env="staging"),
            accounts=provider,
            profiles=profiles,
            env={},
        )


@pytest.mark.asyncio
async def test_creates_active_admin(provider, profiles):
    profile = await ensure_dev_admin(_settings(), accounts=provider, profiles=profiles, env={})

    assert profile.role == Role.ADMIN
    assert profile.status == ProfileStatus.ACTIVE
    assert profile.name == "Seed Admin"
    handle = await provider.verify_credentials("seed@example.com", "seedpass1")
    assert handle.uid == profile.uid


@pytest.mark.asyncio
async def test_is_idempotent(provider, profiles):
    first = await ensure_dev_admin(_settings(), accounts=provider, profiles=profiles, env={})
    second = await ensure_dev_admin(_settings(), accounts=provider, profiles=profiles, env={})

    assert first.uid == second.uid
    assert len(await profiles.list_profiles()) == 1


@pytest.mark.asyncio
async def test_reuses_existing_account_without_profile(provider, profiles):
    handle = await provider.create_account("seed@example.com", "seedpass1")

    profile = await ensure_dev_admin(_settings(), accounts=provider, profiles=profiles, env={})

    assert profile.uid == handle.uid


@pytest.mark.asyncio
async def test_e2e_override_ignores_app_env(provider, profiles):
    env = {
        "E2E_SEED_ADMIN": "true",
        "E2E_ADMIN_EMAIL": "e2e@example.com",
        "E2E_ADMIN_PASSWORD": "e2epass1",
    }

    profile = await ensure_dev_admin(
        _settings(app_env="test", dev_seed_admin=False),
        accounts=provider,
        profiles=profiles,
        env=env,
    )

    assert profile.email == "e2e@example.com"
    assert profile.role == Role.ADMIN
