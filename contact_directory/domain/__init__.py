"""
Name: Domain exports

Responsibilities:
  - Central export surface for entities and ports

Rules:
  - Only re-exports domain contracts/entities
  - No infrastructure imports here
"""

from .entities import (
    AuditEvent,
    Contact,
    Principal,
    PrincipalHandle,
    Profile,
    ProfileStatus,
    RestrictionSettings,
    Role,
)
from .repositories import (
    AuditEventRepository,
    ContactRepository,
    CredentialRepository,
    ProfileRepository,
    RestrictionSettingsRepository,
)
from .services import IdentityProvider, PrivilegedFunctions

__all__ = [
    # Entities
    "AuditEvent",
    "Contact",
    "Principal",
    "PrincipalHandle",
    "Profile",
    "ProfileStatus",
    "RestrictionSettings",
    "Role",
    # Repository ports
    "AuditEventRepository",
    "ContactRepository",
    "CredentialRepository",
    "ProfileRepository",
    "RestrictionSettingsRepository",
    # Service ports
    "IdentityProvider",
    "PrivilegedFunctions",
]
