"""PostgreSQL adapters (psycopg 3 async + AsyncConnectionPool)."""

from .audit import PostgresAuditEventRepository
from .contacts import PostgresContactRepository
from .credentials import PostgresCredentialRepository
from .profiles import PostgresProfileRepository
from .restriction_settings import PostgresRestrictionSettingsRepository
from .session_revocations import PostgresSessionRevocationRepository

__all__ = [
    "PostgresAuditEventRepository",
    "PostgresContactRepository",
    "PostgresCredentialRepository",
    "PostgresProfileRepository",
    "PostgresRestrictionSettingsRepository",
    "PostgresSessionRevocationRepository",
]
