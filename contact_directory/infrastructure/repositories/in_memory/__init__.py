"""In-memory adapters (tests / local development). Data is lost on restart."""

from .audit import InMemoryAuditEventRepository
from .contacts import InMemoryContactRepository
from .credentials import InMemoryCredentialRepository
from .profiles import InMemoryProfileRepository
from .restriction_settings import InMemoryRestrictionSettingsRepository
from .session_revocations import InMemorySessionRevocationRepository

__all__ = [
    "InMemoryAuditEventRepository",
    "InMemoryContactRepository",
    "InMemoryCredentialRepository",
    "InMemoryProfileRepository",
    "InMemoryRestrictionSettingsRepository",
    "InMemorySessionRevocationRepository",
]
