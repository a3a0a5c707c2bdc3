"""
Name: In-memory Repository Tests

Responsibilities:
  - Profile email uniqueness (case-insensitive) and update whitelist
  - Contact ordering and update whitelist
  - Defensive copies: callers never mutate stored objects
  - Audit log ordering (newest first) and limits
  - Session revocations: sid, per-user cut-off, expiry purge
"""

from datetime import timedelta

import pytest

from contact_directory.domain.entities import (
    AuditEvent,
    Contact,
    Profile,
    ProfileStatus,
    Role,
    utcnow,
)

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_profile_email_is_unique_ignoring_case(profiles):
    await profiles.save_profile(Profile(uid="u1", email="a@example.com", name="A"))

    with pytest.raises(ValueError):
        await profiles.save_profile(Profile(uid="u2", email="A@Example.com", name="B"))

    # Same uid may be saved again
    await profiles.save_profile(Profile(uid="u1", email="a@example.com", name="A2"))
    assert (await profiles.find_by_email("A@EXAMPLE.COM")).name == "A2"


@pytest.mark.asyncio
async def test_profile_update_whitelist(profiles):
    await profiles.save_profile(Profile(uid="u1", email="a@example.com", name="A"))

    updated = await profiles.update_profile("u1", role=Role.ADMIN, status=ProfileStatus.INACTIVE)

    assert updated.role == Role.ADMIN
    assert updated.status == ProfileStatus.INACTIVE
    assert updated.updated_at is not None
    assert await profiles.update_profile("missing", role=Role.EDIT) is None
    with pytest.raises(ValueError, match="created_by"):
        await profiles.update_profile("u1", created_by="someone-else")
    assert (await profiles.get_profile("u1")).created_by is None


@pytest.mark.asyncio
async def test_profile_reads_are_copies(profiles):
    await profiles.save_profile(Profile(uid="u1", email="a@example.com", name="A"))

    copy = await profiles.get_profile("u1")
    copy.name = "mutated"

    assert (await profiles.get_profile("u1")).name == "A"


@pytest.mark.asyncio
async def test_list_profiles_filters_deleted(profiles):
    await profiles.save_profile(Profile(uid="u1", email="b@example.com", name="B"))
    await profiles.save_profile(
        Profile(uid="u2", email="a@example.com", name="A", status=ProfileStatus.DELETED)
    )

    assert [p.uid for p in await profiles.list_profiles()] == ["u1"]
    assert [p.uid for p in await profiles.list_profiles(include_deleted=True)] == ["u2", "u1"]


@pytest.mark.asyncio
async def test_contact_update_rejects_unknown_fields(contacts_repo):
    await contacts_repo.add_contact(Contact(id="c1", name="Ada"))

    with pytest.raises(ValueError):
        await contacts_repo.update_contact("c1", created_by="someone")
    assert (await contacts_repo.update_contact("c1", title="Countess")).title == "Countess"


@pytest.mark.asyncio
async def test_contacts_bulk(contacts_repo):
    written = await contacts_repo.add_contacts(
        [Contact(id="c2", name="beta"), Contact(id="c1", name="Alpha")]
    )

    assert written == 2
    assert [c.id for c in await contacts_repo.list_contacts()] == ["c1", "c2"]
    assert await contacts_repo.delete_contact("c1") is True
    assert await contacts_repo.delete_contact("c1") is False
    assert await contacts_repo.delete_all_contacts() == 1


@pytest.mark.asyncio
async def test_audit_events_newest_first(audit_repo):
    for i in range(3):
        await audit_repo.record_event(AuditEvent(id=str(i), actor="user:x", action=f"a{i}"))

    events = await audit_repo.list_events(limit=2)

    assert [e.action for e in events] == ["a2", "a1"]
    assert all(e.created_at is not None for e in events)
    assert await audit_repo.list_events(limit=0) == []


@pytest.mark.asyncio
async def test_credentials_reject_duplicate_uid_or_email(credentials):
    assert await credentials.create_credential("u1", "a@example.com", "h1") is True
    assert await credentials.create_credential("u1", "b@example.com", "h2") is False
    assert await credentials.create_credential("u2", "A@example.com", "h2") is False
    assert await credentials.get_credential(" a@EXAMPLE.com") == ("u1", "h1")


@pytest.mark.asyncio
async def test_revoked_session_and_user_cutoff(revocations):
    later = utcnow() + timedelta(hours=1)
    await revocations.revoke_session("s1", later)
    await revocations.revoke_user_sessions("u2", 1_000, later)

    assert await revocations.is_revoked("s1", "u1", 5_000) is True
    assert await revocations.is_revoked("s2", "u1", 5_000) is False
    assert await revocations.is_revoked("s3", "u2", 1_000) is True
    assert await revocations.is_revoked("s4", "u2", 1_001) is False


@pytest.mark.asyncio
async def test_user_cutoff_never_moves_back(revocations):
    later = utcnow() + timedelta(hours=1)
    await revocations.revoke_user_sessions("u1", 2_000, later)
    await revocations.revoke_user_sessions("u1", 1_000, later)

    assert await revocations.is_revoked("s1", "u1", 1_500) is True


@pytest.mark.asyncio
async def test_purge_drops_only_expired_rows(revocations):
    now = utcnow()
    await revocations.revoke_session("old", now - timedelta(seconds=1))
    await revocations.revoke_session("live", now + timedelta(hours=1))
    await revocations.revoke_user_sessions("u1", 1_000, now - timedelta(seconds=1))

    assert await revocations.purge_expired(now) == 2
    assert len(revocations) == 1
    assert await revocations.is_revoked("live", "u1", 0) is True
