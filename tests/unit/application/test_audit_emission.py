"""Audit emission: attribution, masking and best-effort writes."""

from unittest.mock import AsyncMock

import pytest

from contact_directory.audit import emit_audit_event
from contact_directory.crosscutting.exceptions import PersistenceError
from contact_directory.domain.entities import Principal, PrincipalHandle, Profile, Role

pytestmark = pytest.mark.unit


@pytest.fixture
def admin() -> Principal:
    return Principal(
        handle=PrincipalHandle(uid="admin-uid", email="admin@example.com"),
        profile=Profile(uid="admin-uid", email="admin@example.com", name="Admin", role=Role.ADMIN),
    )


@pytest.mark.asyncio
async def test_event_attributed_to_principal(audit_repo, admin):
    await emit_audit_event(
        audit_repo, action="contacts.delete", principal=admin, target_id="c-1"
    )

    [event] = await audit_repo.list_events()
    assert event.actor == "user:admin-uid"
    assert event.target_id == "c-1"
    assert event.metadata == {"principal_type": "user", "role": "Admin"}


@pytest.mark.asyncio
async def test_anonymous_event_with_explicit_actor(audit_repo):
    await emit_audit_event(audit_repo, action="auth.login_failed", actor="email:x@example.com")

    [event] = await audit_repo.list_events()
    assert event.actor == "email:x@example.com"
    assert event.metadata["principal_type"] == "anonymous"


@pytest.mark.asyncio
async def test_secret_metadata_is_masked(audit_repo, admin):
    await emit_audit_event(
        audit_repo,
        action="users.update",
        principal=admin,
        metadata={"password": "hunter22", "fields": ("password",)},
    )

    [event] = await audit_repo.list_events()
    assert event.metadata["password"] == "***"
    assert event.metadata["fields"] == ["password"]


@pytest.mark.asyncio
async def test_failed_write_does_not_raise(admin):
    repo = AsyncMock()
    repo.record_event.side_effect = PersistenceError("down")

    await emit_audit_event(repo, action="users.create", principal=admin)

    repo.record_event.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_repository_is_a_no_op(admin):
    await emit_audit_event(None, action="users.create", principal=admin)
