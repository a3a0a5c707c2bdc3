"""
Name: Domain Repository Interfaces (Protocols)

Responsibilities:
  - Persistence contracts for the domain layer (ports)
  - Keep identity/application code independent from PostgreSQL or in-memory storage
  - Allow unit tests to substitute fakes

Collaborators:
  - domain/entities.py
  - infrastructure/repositories/in_memory/*, infrastructure/repositories/postgres/*

Constraints:
  - Pure interfaces: no SQL, no infrastructure imports
  - Every method is a coroutine; store reads and writes are suspension points
  - Implementations raise PersistenceError for storage failures

Notes:
  - typing.Protocol gives structural subtyping; adapters do not inherit
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .entities import AuditEvent, Contact, Profile, RestrictionSettings


class ProfileRepository(Protocol):
    """R: Profiles keyed by provider uid, unique by email."""

    async def get_profile(self, uid: str) -> Profile | None: ...

    async def find_by_email(self, email: str) -> Profile | None:
        """R: Case-insensitive lookup, Deleted profiles included."""
        ...

    async def list_profiles(self, *, include_deleted: bool = False) -> list[Profile]:
        """R: Profiles ordered by email."""
        ...

    async def save_profile(self, profile: Profile) -> None:
        """R: Create or fully overwrite the record with this uid."""
        ...

    async def update_profile(self, uid: str, **changes) -> Profile | None:
        """R: Partial update; returns the stored record or None if absent."""
        ...


class CredentialRepository(Protocol):
    """R: Password hashes for the local identity provider."""

    async def get_credential(self, email: str) -> tuple[str, str] | None:
        """R: (uid, password_hash) for the email, or None."""
        ...

    async def get_uid_credential(self, uid: str) -> tuple[str, str] | None:
        """R: (email, password_hash) for the uid, or None."""
        ...

    async def create_credential(self, uid: str, email: str, password_hash: str) -> bool:
        """R: False when the email is already taken."""
        ...

    async def set_password_hash(self, uid: str, password_hash: str) -> bool: ...

    async def delete_credential(self, uid: str) -> bool: ...


class SessionRevocationRepository(Protocol):
    """
    R: Ended sessions, shared by every process serving the same store.

    Rows carry an expiry after which the tokens they cover are dead anyway;
    purge_expired drops them.
    """

    async def revoke_session(self, sid: str, expires_at: datetime) -> None: ...

    async def revoke_user_sessions(
        self, uid: str, cutoff_ms: int, expires_at: datetime
    ) -> None:
        """R: Every token of `uid` issued at or before `cutoff_ms` is dead."""
        ...

    async def is_revoked(self, sid: str, uid: str, issued_ms: int) -> bool: ...

    async def purge_expired(self, now: datetime) -> int:
        """R: Drop rows whose expiry has passed; returns how many."""
        ...


class RestrictionSettingsRepository(Protocol):
    """R: Singleton document holding the IP allow-list."""

    async def get_settings(self) -> RestrictionSettings | None: ...

    async def create_settings_if_absent(
        self, settings: RestrictionSettings
    ) -> RestrictionSettings:
        """
        R: Conditional create.

        Stores `settings` only when no document exists and returns whatever
        is stored afterwards (the caller's value or the concurrent winner).
        """
        ...

    async def save_settings(self, settings: RestrictionSettings) -> None:
        """R: Unconditional overwrite (last write wins)."""
        ...


class ContactRepository(Protocol):
    async def list_contacts(self) -> list[Contact]:
        """R: All contacts ordered by name."""
        ...

    async def get_contact(self, contact_id: str) -> Contact | None: ...

    async def add_contact(self, contact: Contact) -> None: ...

    async def add_contacts(self, contacts: list[Contact]) -> int:
        """R: Batch insert; returns the number written."""
        ...

    async def update_contact(self, contact_id: str, **changes) -> Contact | None: ...

    async def delete_contact(self, contact_id: str) -> bool: ...

    async def delete_all_contacts(self) -> int: ...


class AuditEventRepository(Protocol):
    async def record_event(self, event: AuditEvent) -> None: ...

    async def list_events(self, *, limit: int = 100) -> list[AuditEvent]:
        """R: Most recent first."""
        ...
