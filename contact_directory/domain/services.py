"""
Name: Domain Service Interfaces (external platform ports)

Responsibilities:
  - Contracts for the identity provider, the privileged server-side calls
    and the network-origin providers
  - Keep session / guard logic testable with fakes

Collaborators:
  - identity/session.py, identity/origin_lookup.py
  - application/usecases/users.py
  - infrastructure/services/*

Constraints:
  - Session-change subscriptions deliver the current state before
    `subscribe_session_changes` returns
  - Provider failures surface as IdentityProviderError (with a provider code)
  - Privileged calls surface as PrivilegedCallError
"""

from __future__ import annotations

from typing import AsyncContextManager, Awaitable, Callable, Protocol

from .entities import PrincipalHandle

SessionCallback = Callable[[PrincipalHandle | None], Awaitable[None]]
Unsubscribe = Callable[[], None]
OriginProvider = Callable[[], Awaitable[str | None]]


class IdentityProvider(Protocol):
    """R: Credential verification and session lifecycle."""

    async def verify_credentials(self, email: str, password: str) -> PrincipalHandle:
        """R: Returns a handle carrying a fresh session token, or raises."""
        ...

    async def sign_out(self, handle: PrincipalHandle) -> None:
        """R: Revoke the handle's session and notify its subscribers with None."""
        ...

    async def subscribe_session_changes(
        self, session_token: str | None, callback: SessionCallback
    ) -> Unsubscribe:
        """
        R: Push session changes for a token.

        The callback receives the handle while the session is live and None
        once it is gone. The initial notification is awaited before return.
        """
        ...

    async def create_account(
        self, email: str, password: str, *, uid: str | None = None
    ) -> PrincipalHandle:
        """R: New identity account; `uid` reuses an existing identifier."""
        ...

    def secondary_context(self) -> AsyncContextManager["IdentityProvider"]:
        """
        R: Isolated provider context.

        Accounts created inside never touch the caller's session; sessions
        issued inside are revoked on exit.
        """
        ...


class PrivilegedFunctions(Protocol):
    """R: Server-side calls that need elevated rights."""

    async def update_user_password(self, email: str, new_password: str) -> None: ...

    async def delete_user(self, email: str) -> None:
        """R: Remove the identity account and mark the profile Deleted."""
        ...
