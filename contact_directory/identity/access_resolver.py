"""
Name: Access Resolver

Responsibilities:
  - Decide whether a role must be kept out given the restriction settings
    and the caller's live network origin

Collaborators:
  - identity/origin_lookup.py (origin)
  - identity/ip_classifier.py (membership)
  - identity/route_guard.py (consumer)

Constraints:
  - Admin is exempt before any network call
  - Origin lookup failure fails OPEN (not restricted)
  - Pure function of (role, enabled, allowed_ranges, origin): no hidden state
"""

from __future__ import annotations

from typing import Sequence

from ..crosscutting.exceptions import LookupFailure
from ..crosscutting.logger import logger
from ..domain.entities import Role
from .ip_classifier import is_allowed
from .origin_lookup import OriginLookup


class AccessResolver:
    def __init__(self, origin_lookup: OriginLookup):
        self._origin_lookup = origin_lookup

    async def should_restrict(
        self,
        role: Role | None,
        enabled: bool,
        allowed_ranges: Sequence[str],
    ) -> bool:
        if role == Role.ADMIN:
            return False

        if not enabled or not allowed_ranges:
            return False

        try:
            origin = await self._origin_lookup.lookup()
        except LookupFailure:
            logger.warning(
                "origin lookup exhausted, allowing access",
                extra={"role": role.value if role else None},
            )
            return False

        restricted = not is_allowed(origin, allowed_ranges)
        if restricted:
            logger.info(
                "origin outside allowed ranges",
                extra={"origin": origin, "role": role.value if role else None},
            )
        return restricted
