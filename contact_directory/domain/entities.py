"""
Name: Domain Entities (Profile, RestrictionSettings, Contact)

Responsibilities:
  - Core business structures, free of infrastructure
  - Minimal helpers that keep simple invariants close to the data

Collaborators:
  - domain/repositories.py: persist and load these entities
  - identity/*, application/*: build and consume them
  - api/*: serialise them into response DTOs

Constraints:
  - No DB / HTTP / FastAPI imports
  - Identifiers are opaque strings issued by the identity provider or the store
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Roles & status
# ---------------------------------------------------------------------------


class Role(str, Enum):
    """Stored as a flat tag. Capabilities nest: ADMIN > EDIT > VIEW."""

    VIEW = "View"
    EDIT = "Edit"
    ADMIN = "Admin"


class ProfileStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DELETED = "Deleted"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PrincipalHandle:
    """Opaque handle the identity provider hands back after sign-in."""

    uid: str
    email: str
    session_token: str | None = None


@dataclass(slots=True)
class Profile:
    """
    Application-side record for an identity, keyed by the provider uid.

    `email` is unique and is the lookup key for destructive admin operations.
    """

    uid: str
    email: str
    name: str
    role: Role = Role.VIEW
    status: ProfileStatus = ProfileStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ProfileStatus.ACTIVE

    @property
    def is_deleted(self) -> bool:
        return self.status == ProfileStatus.DELETED


@dataclass(frozen=True, slots=True)
class Principal:
    """An authenticated identity: provider handle plus Active profile."""

    handle: PrincipalHandle
    profile: Profile

    @property
    def uid(self) -> str:
        return self.handle.uid

    @property
    def role(self) -> Role:
        return self.profile.role


# ---------------------------------------------------------------------------
# Restriction settings
# ---------------------------------------------------------------------------

RESTRICTION_SETTINGS_ID = "ipRestrictions"
DEFAULT_ALLOWED_RANGES: tuple[str, ...] = (
    "127.0.0.1",
    "192.168.0.0/16",
    "10.0.0.0/8",
)
DEFAULT_RESTRICTION_DESCRIPTION = "Default IP restriction settings"


@dataclass(frozen=True, slots=True)
class RestrictionSettings:
    """Singleton IP allow-list configuration. Range order is preserved."""

    enabled: bool = False
    allowed_ranges: tuple[str, ...] = ()
    description: str = ""
    updated_at: datetime | None = None
    updated_by: str | None = None

    @classmethod
    def default(cls, updated_by: str | None = None) -> "RestrictionSettings":
        return cls(
            enabled=False,
            allowed_ranges=DEFAULT_ALLOWED_RANGES,
            description=DEFAULT_RESTRICTION_DESCRIPTION,
            updated_at=utcnow(),
            updated_by=updated_by or "system",
        )

    def with_changes(self, **changes) -> "RestrictionSettings":
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------

CONTACT_TEXT_FIELDS: tuple[str, ...] = (
    "name",
    "title",
    "company",
    "email",
    "mobile_phone",
    "work_phone",
    "fax",
    "website",
    "address",
    "notes",
)

# Fields scanned by the free-text search.
CONTACT_SEARCH_FIELDS: tuple[str, ...] = (
    "name",
    "title",
    "company",
    "address",
    "notes",
)


@dataclass(slots=True)
class Contact:
    id: str
    name: str
    title: str = ""
    company: str = ""
    email: str = ""
    mobile_phone: str = ""
    work_phone: str = ""
    fax: str = ""
    website: str = ""
    address: str = ""
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over the searchable fields."""
        needle = term.strip().lower()
        if not needle:
            return True
        return any(
            needle in (getattr(self, name) or "").lower()
            for name in CONTACT_SEARCH_FIELDS
        )

    def text_fields(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in CONTACT_TEXT_FIELDS}


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class AuditEvent:
    """Append-only audit record. metadata holds JSON-serialisable values."""

    id: str
    actor: str
    action: str
    target_id: str | None = None
    metadata: dict = field(default_factory=dict)
    created_at: datetime | None = None
