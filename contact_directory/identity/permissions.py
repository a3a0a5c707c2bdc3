"""
Name: Permission Predicates

Responsibilities:
  - Derive coarse capabilities (view / edit / administer) from a role

Collaborators:
  - api/dependencies.py: enforces them on every endpoint
  - api/auth_routes.py: advertises them to the client (/auth/access)

Notes:
  - canEdit also covers delete; there is no separate delete role
"""

from __future__ import annotations

from enum import Enum

from ..domain.entities import Role


class Capability(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMINISTER = "administer"


_ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.VIEW: frozenset({Capability.VIEW}),
    Role.EDIT: frozenset({Capability.VIEW, Capability.EDIT}),
    Role.ADMIN: frozenset(
        {Capability.VIEW, Capability.EDIT, Capability.ADMINISTER}
    ),
}


def capabilities_for(role: Role | None) -> frozenset[Capability]:
    if role is None:
        return frozenset()
    return _ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role: Role | None, capability: Capability) -> bool:
    return capability in capabilities_for(role)


def can_view(role: Role | None) -> bool:
    return has_capability(role, Capability.VIEW)


def can_edit(role: Role | None) -> bool:
    return has_capability(role, Capability.EDIT)


def can_delete(role: Role | None) -> bool:
    return can_edit(role)


def can_administer(role: Role | None) -> bool:
    return has_capability(role, Capability.ADMINISTER)
