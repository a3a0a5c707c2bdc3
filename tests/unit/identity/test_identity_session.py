"""
Name: Identity Session Tests

Responsibilities:
  - Session restore from an ambient token (Active / Inactive / missing profile)
  - Login outcomes and their generic / deactivated messages
  - Logout and external invalidation (account deletion)
  - Listener notifications and stale-result handling
"""

from unittest.mock import AsyncMock

import pytest

from contact_directory.crosscutting.exceptions import (
    ACCOUNT_DEACTIVATED_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    AuthError,
    AuthReason,
    PersistenceError,
)
from contact_directory.domain.entities import ProfileStatus, Role
from contact_directory.identity.session import IdentitySession, SessionState

pytestmark = pytest.mark.unit


# =============================================================================
# Restore
# =============================================================================


@pytest.mark.asyncio
async def test_start_without_token_is_anonymous(provider, profiles):
    session = IdentitySession(provider, profiles)
    snapshot = await session.start()
    assert snapshot.state == SessionState.ANONYMOUS
    assert snapshot.loading is False
    assert session.principal is None


@pytest.mark.asyncio
async def test_start_with_live_token_authenticates(provider, profiles, make_user):
    handle = await make_user("edit@example.com", role=Role.EDIT)
    session = IdentitySession(provider, profiles, session_token=handle.session_token)

    snapshot = await session.start()

    assert snapshot.is_authenticated
    assert session.principal.uid == handle.uid
    assert session.principal.role == Role.EDIT


@pytest.mark.asyncio
async def test_start_with_garbage_token_is_anonymous(provider, profiles):
    session = IdentitySession(provider, profiles, session_token="not-a-jwt")
    assert (await session.start()).state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_inactive_profile_is_signed_out_on_restore(provider, profiles, make_user):
    handle = await make_user("view@example.com")
    await profiles.update_profile(handle.uid, status=ProfileStatus.INACTIVE)

    session = IdentitySession(provider, profiles, session_token=handle.session_token)
    assert (await session.start()).state == SessionState.ANONYMOUS

    # The forced sign-out revoked the token for good.
    await profiles.update_profile(handle.uid, status=ProfileStatus.ACTIVE)
    again = IdentitySession(provider, profiles, session_token=handle.session_token)
    assert (await again.start()).state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_missing_profile_is_anonymous(provider, profiles):
    handle = await provider.create_account("ghost@example.com", "secret123")
    session = IdentitySession(provider, profiles, session_token=handle.session_token)
    assert (await session.start()).state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_profile_read_failure_restores_as_anonymous(provider, make_user, profiles):
    handle = await make_user("flaky@example.com")
    broken = AsyncMock()
    broken.get_profile.side_effect = PersistenceError("db down")

    session = IdentitySession(provider, broken, session_token=handle.session_token)
    assert (await session.start()).state == SessionState.ANONYMOUS


# =============================================================================
# Login
# =============================================================================


@pytest.mark.asyncio
async def test_login_success(provider, profiles, make_user):
    await make_user("admin@example.com", "hunter22", role=Role.ADMIN)
    session = IdentitySession(provider, profiles)
    await session.start()

    principal = await session.login("admin@example.com", "hunter22")

    assert principal.role == Role.ADMIN
    assert session.state == SessionState.AUTHENTICATED
    assert session.session_token == principal.handle.session_token


@pytest.mark.asyncio
async def test_login_wrong_password_is_generic(provider, profiles, make_user):
    await make_user("view@example.com", "right-password")
    session = IdentitySession(provider, profiles)
    await session.start()

    with pytest.raises(AuthError) as exc_info:
        await session.login("view@example.com", "wrong-password")

    assert exc_info.value.reason == AuthReason.INVALID_CREDENTIALS
    assert exc_info.value.message == INVALID_CREDENTIALS_MESSAGE
    assert session.state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_login_unknown_email_is_generic(provider, profiles):
    session = IdentitySession(provider, profiles)
    await session.start()
    with pytest.raises(AuthError) as exc_info:
        await session.login("nobody@example.com", "whatever")
    assert exc_info.value.message == INVALID_CREDENTIALS_MESSAGE


@pytest.mark.asyncio
async def test_login_inactive_account_is_deactivated(provider, profiles, make_user):
    await make_user("off@example.com", "secret123", status=ProfileStatus.INACTIVE)
    session = IdentitySession(provider, profiles)
    await session.start()

    with pytest.raises(AuthError) as exc_info:
        await session.login("off@example.com", "secret123")

    assert exc_info.value.reason == AuthReason.ACCOUNT_DEACTIVATED
    assert exc_info.value.message == ACCOUNT_DEACTIVATED_MESSAGE
    assert session.state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_login_deleted_account_is_generic(provider, profiles, make_user):
    await make_user("gone@example.com", "secret123", status=ProfileStatus.DELETED)
    session = IdentitySession(provider, profiles)
    await session.start()

    with pytest.raises(AuthError) as exc_info:
        await session.login("gone@example.com", "secret123")

    assert exc_info.value.reason == AuthReason.INVALID_CREDENTIALS


@pytest.mark.asyncio
async def test_login_without_profile_signs_out(provider, profiles):
    await provider.create_account("orphan@example.com", "secret123")
    sign_out = AsyncMock(wraps=provider.sign_out)
    provider.sign_out = sign_out

    session = IdentitySession(provider, profiles)
    await session.start()
    with pytest.raises(AuthError):
        await session.login("orphan@example.com", "secret123")

    sign_out.assert_awaited_once()


# =============================================================================
# Logout / invalidation
# =============================================================================


@pytest.mark.asyncio
async def test_logout_revokes_the_token(provider, profiles, make_user):
    await make_user("view@example.com", "secret123")
    session = IdentitySession(provider, profiles)
    await session.start()
    principal = await session.login("view@example.com", "secret123")

    await session.logout()

    assert session.state == SessionState.ANONYMOUS
    assert session.session_token is None
    restored = IdentitySession(
        provider, profiles, session_token=principal.handle.session_token
    )
    assert (await restored.start()).state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_account_deletion_ends_live_session(provider, profiles, make_user):
    handle = await make_user("view@example.com")
    session = IdentitySession(provider, profiles, session_token=handle.session_token)
    await session.start()
    assert session.state == SessionState.AUTHENTICATED

    await provider.delete_account(handle.uid)

    assert session.state == SessionState.ANONYMOUS


# =============================================================================
# Listeners / liveness
# =============================================================================


@pytest.mark.asyncio
async def test_listeners_see_every_transition(provider, profiles, make_user):
    handle = await make_user("view@example.com")
    seen = []

    async def listener(snapshot):
        seen.append(snapshot.state)

    session = IdentitySession(provider, profiles, session_token=handle.session_token)
    session.add_listener(listener)
    await session.start()
    await session.logout()

    assert seen == [
        SessionState.RESOLVING,
        SessionState.AUTHENTICATED,
        SessionState.ANONYMOUS,
    ]


@pytest.mark.asyncio
async def test_removed_listener_is_not_called(provider, profiles):
    calls = []

    async def listener(snapshot):
        calls.append(snapshot)

    session = IdentitySession(provider, profiles)
    remove = session.add_listener(listener)
    remove()
    await session.start()
    assert calls == []


@pytest.mark.asyncio
async def test_closed_session_ignores_late_notifications(provider, profiles, make_user):
    handle = await make_user("view@example.com")
    session = IdentitySession(provider, profiles, session_token=handle.session_token)
    await session.start()
    session.close()

    await session._on_session_change(None)

    assert session.state == SessionState.AUTHENTICATED


@pytest.mark.asyncio
async def test_superseded_profile_read_is_dropped(provider, make_user, profiles):
    handle = await make_user("view@example.com")
    session = IdentitySession(provider, profiles)
    await session.start()

    async def slow_get_profile(uid):
        # A newer notification lands while this read is in flight.
        await session._on_session_change(None)
        return await profiles.get_profile(uid)

    session._profiles = AsyncMock()
    session._profiles.get_profile.side_effect = slow_get_profile

    await session._on_session_change(handle)

    assert session.state == SessionState.ANONYMOUS
