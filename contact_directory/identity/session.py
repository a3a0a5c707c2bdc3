"""
Name: Identity Session (state machine)

Responsibilities:
  - Track the authenticated principal for one client
  - Re-validate the profile (status, role) on every session notification
  - Own login / logout transitions and react to external invalidation
  - Push every state change to registered listeners (Route Guard)

Collaborators:
  - domain/services.py: IdentityProvider (session notifications, sign-out)
  - domain/repositories.py: ProfileRepository
  - identity/route_guard.py: listener

States:
  UNINITIALIZED -> RESOLVING -> {AUTHENTICATED(principal), ANONYMOUS}

Constraints:
  - A principal whose profile is not Active is never exposed as AUTHENTICATED
  - Continuations check liveness and a generation counter; late results of
    superseded notifications are dropped
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from ..crosscutting.exceptions import (
    AuthError,
    IdentityProviderError,
    PersistenceError,
)
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_login
from ..domain.entities import Principal, PrincipalHandle, Profile, ProfileStatus
from ..domain.repositories import ProfileRepository
from ..domain.services import IdentityProvider, Unsubscribe


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    state: SessionState
    principal: Principal | None = None

    @property
    def loading(self) -> bool:
        return self.state in (SessionState.UNINITIALIZED, SessionState.RESOLVING)

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED and self.principal is not None


SessionListener = Callable[[SessionSnapshot], Awaitable[None]]


class IdentitySession:
    def __init__(
        self,
        provider: IdentityProvider,
        profiles: ProfileRepository,
        *,
        session_token: str | None = None,
    ):
        self._provider = provider
        self._profiles = profiles
        self._session_token = session_token
        self._state = SessionState.UNINITIALIZED
        self._principal: Principal | None = None
        self._listeners: list[SessionListener] = []
        self._unsubscribe: Unsubscribe | None = None
        self._generation = 0
        self._alive = True

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(self._state, self._principal)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def loading(self) -> bool:
        return self.snapshot.loading

    @property
    def session_token(self) -> str | None:
        return self._session_token

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> SessionSnapshot:
        """
        Enter RESOLVING and subscribe to the ambient session.

        The provider delivers the first notification before the subscription
        returns, so the session has settled once this coroutine completes.
        """
        if self._state != SessionState.UNINITIALIZED:
            return self.snapshot
        await self._transition(SessionState.RESOLVING, None)
        await self._subscribe(self._session_token)
        return self.snapshot

    def close(self) -> None:
        """Stop reacting; in-flight continuations become no-ops."""
        self._alive = False
        self._generation += 1
        self._drop_subscription()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Explicit transitions
    # ------------------------------------------------------------------
    async def login(self, email: str, password: str) -> Principal:
        try:
            handle = await self._provider.verify_credentials(email, password)
        except IdentityProviderError as exc:
            record_login("invalid_credentials")
            logger.info("sign-in rejected by provider", extra={"code": exc.code})
            raise AuthError.invalid_credentials() from exc

        try:
            profile = await self._profiles.get_profile(handle.uid)
        except PersistenceError:
            await self._provider.sign_out(handle)
            raise

        rejection = _login_rejection(profile)
        if rejection is not None:
            await self._provider.sign_out(handle)
            record_login(rejection.reason.value.lower())
            logger.info(
                "sign-in refused by profile status",
                extra={
                    "uid": handle.uid,
                    "status": profile.status.value if profile else None,
                },
            )
            raise rejection

        if not self._alive:
            return Principal(handle=handle, profile=profile)

        # The new token's first notification re-checks the profile and
        # settles the state before the subscription returns.
        self._drop_subscription()
        self._session_token = handle.session_token
        await self._subscribe(self._session_token)

        if not self.snapshot.is_authenticated:
            record_login("invalid_credentials")
            raise AuthError.invalid_credentials()

        record_login("success")
        logger.info("sign-in succeeded", extra={"uid": handle.uid})
        return self._principal

    async def logout(self) -> None:
        principal = self._principal
        if principal is not None:
            await self._provider.sign_out(principal.handle)
        self._generation += 1
        self._session_token = None
        if self._alive and self._state != SessionState.ANONYMOUS:
            await self._transition(SessionState.ANONYMOUS, None)

    # ------------------------------------------------------------------
    # Session-change messages
    # ------------------------------------------------------------------
    async def _subscribe(self, token: str | None) -> None:
        self._unsubscribe = await self._provider.subscribe_session_changes(
            token, self._on_session_change
        )

    def _drop_subscription(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_session_change(self, handle: PrincipalHandle | None) -> None:
        if not self._alive:
            return
        self._generation += 1
        generation = self._generation

        if handle is None:
            await self._transition(SessionState.ANONYMOUS, None)
            return

        try:
            profile = await self._profiles.get_profile(handle.uid)
        except PersistenceError as exc:
            logger.warning(
                "profile lookup failed during session restore",
                extra={"uid": handle.uid, "error": str(exc)},
            )
            profile = None

        if not self._is_current(generation):
            return

        if profile is None:
            await self._transition(SessionState.ANONYMOUS, None)
            return

        if profile.status != ProfileStatus.ACTIVE:
            logger.info(
                "ending session for non-active profile",
                extra={"uid": handle.uid, "status": profile.status.value},
            )
            await self._provider.sign_out(handle)
            if self._is_current(generation):
                await self._transition(SessionState.ANONYMOUS, None)
            return

        await self._transition(
            SessionState.AUTHENTICATED, Principal(handle=handle, profile=profile)
        )

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    async def _transition(
        self, state: SessionState, principal: Principal | None
    ) -> None:
        self._state = state
        self._principal = principal
        snapshot = self.snapshot
        for listener in list(self._listeners):
            await listener(snapshot)


def _login_rejection(profile: Profile | None) -> AuthError | None:
    if profile is None or profile.status == ProfileStatus.DELETED:
        return AuthError.invalid_credentials()
    if profile.status == ProfileStatus.INACTIVE:
        return AuthError.account_deactivated()
    return None
