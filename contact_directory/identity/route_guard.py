"""
Name: Route Guard

Responsibilities:
  - Compose the Identity Session and the Access Resolver into one admission
    decision for every protected entry point
  - Recompute on session and settings messages, keeping only the latest inputs

Collaborators:
  - identity/session.py (session messages)
  - application/restriction_settings.py (settings messages)
  - identity/access_resolver.py
  - api/dependencies.py (maps decisions to HTTP errors)

Constraints:
  - PENDING while either input is loading; never ALLOW/REDIRECT on a
    half-resolved session
  - An evaluation superseded by a newer message is discarded
  - Settings read failure evaluates as restrictions disabled (fail open)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..application.restriction_settings import RestrictionSettingsStore
from ..crosscutting.exceptions import PersistenceError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_admission
from ..domain.entities import RestrictionSettings
from .access_resolver import AccessResolver
from .session import IdentitySession, SessionSnapshot, SessionState


class Admission(str, Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_RESTRICTED = "redirect_restricted"
    PENDING = "pending"


@dataclass(frozen=True, slots=True)
class AccessSnapshot:
    loading: bool = True
    restricted: bool = False


def resolve(session: SessionSnapshot, access: AccessSnapshot) -> Admission:
    """Pure admission decision."""
    if session.loading:
        return Admission.PENDING
    if session.state == SessionState.ANONYMOUS or session.principal is None:
        return Admission.REDIRECT_LOGIN
    if access.loading:
        return Admission.PENDING
    if access.restricted:
        return Admission.REDIRECT_RESTRICTED
    return Admission.ALLOW


class RouteGuard:
    def __init__(
        self,
        session: IdentitySession,
        store: RestrictionSettingsStore,
        resolver: AccessResolver,
    ):
        self._session = session
        self._store = store
        self._resolver = resolver
        self._session_snapshot = session.snapshot
        self._access = AccessSnapshot()
        self._generation = 0
        self._detachers: list[Callable[[], None]] = []

    @property
    def decision(self) -> Admission:
        return resolve(self._session_snapshot, self._access)

    @property
    def access(self) -> AccessSnapshot:
        return self._access

    def attach(self) -> None:
        if self._detachers:
            return
        self._detachers.append(self._session.add_listener(self._on_session))
        self._detachers.append(self._store.subscribe(self._on_settings))

    def detach(self) -> None:
        for detach in self._detachers:
            detach()
        self._detachers.clear()
        self._generation += 1

    async def _on_session(self, snapshot: SessionSnapshot) -> None:
        self._session_snapshot = snapshot
        await self.evaluate()

    async def _on_settings(self, settings: RestrictionSettings) -> None:
        await self.evaluate(settings)

    async def evaluate(self, settings: RestrictionSettings | None = None) -> Admission:
        self._generation += 1
        generation = self._generation
        snapshot = self._session_snapshot

        if snapshot.loading:
            self._access = AccessSnapshot(loading=True)
            return self.decision

        if not snapshot.is_authenticated:
            self._access = AccessSnapshot(loading=False, restricted=False)
            return self._publish()

        self._access = AccessSnapshot(loading=True, restricted=self._access.restricted)

        if settings is None:
            try:
                settings = await self._store.load(reader_id=snapshot.principal.uid)
            except PersistenceError as exc:
                logger.warning(
                    "restriction settings unavailable, evaluating as disabled",
                    extra={"error": str(exc)},
                )
                settings = RestrictionSettings(enabled=False)

        restricted = await self._resolver.should_restrict(
            snapshot.principal.role, settings.enabled, settings.allowed_ranges
        )

        if generation != self._generation:
            return self.decision

        self._access = AccessSnapshot(loading=False, restricted=restricted)
        return self._publish()

    def _publish(self) -> Admission:
        decision = self.decision
        record_admission(decision.value)
        return decision
