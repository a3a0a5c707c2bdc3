"""
Name: LocalIdentityProvider

Responsibilities:
  - Verify email/password against argon2 hashes in the credential store
  - Issue signed session tokens; end them durably on sign-out or account deletion
  - Push session changes to subscribers (handle while live, None once gone)
  - Create accounts, optionally inside an isolated secondary context

Collaborators:
  - domain/repositories.py: CredentialRepository, SessionRevocationRepository
  - identity/tokens.py: hashing + JWT
  - identity/session.py: subscriber

Constraints:
  - Errors are IdentityProviderError with provider-style codes
    (auth/invalid-credential, auth/invalid-email, auth/weak-password,
    auth/email-already-in-use, auth/user-not-found)
  - Revocations go to the shared store so every worker sees a logout; the
    in-process registry only tracks local sessions and subscribers, and both
    forget entries once the token has expired

Notes:
  - A secondary context shares credentials, revocations and the registry
    but owns the sessions it issues; they are revoked when it exits
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from threading import Lock
from typing import AsyncIterator
from uuid import uuid4

from ...crosscutting.exceptions import IdentityProviderError
from ...crosscutting.logger import logger
from ...domain.entities import PrincipalHandle, utcnow
from ...domain.repositories import CredentialRepository, SessionRevocationRepository
from ...domain.services import SessionCallback, Unsubscribe
from ...identity.tokens import (
    SessionClaims,
    TokenSettings,
    decode_session_token,
    hash_password,
    issue_session_token,
    verify_password,
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


class SessionRegistry:
    """
    Sessions this process knows about, and their change subscribers.

    Revocation itself is durable (SessionRevocationRepository); the registry
    only finds which local sessions a user revocation reaches and whom to
    notify. Entries are dropped once their token has expired.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        # sid -> (uid, expires_at)
        self._sessions: dict[str, tuple[str, datetime]] = {}
        self._subscribers: dict[str, list[SessionCallback]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def subscribed_sids(self) -> set[str]:
        with self._lock:
            return set(self._subscribers)

    def register(self, claims: SessionClaims) -> None:
        with self._lock:
            self._prune_locked(utcnow())
            self._sessions[claims.sid] = (claims.uid, _expiry(claims))

    def subscribe(self, claims: SessionClaims, callback: SessionCallback) -> Unsubscribe:
        with self._lock:
            self._sessions[claims.sid] = (claims.uid, _expiry(claims))
            self._subscribers.setdefault(claims.sid, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(claims.sid)
                if callbacks and callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(claims.sid, None)

        return unsubscribe

    def revoke(self, sid: str) -> list[SessionCallback]:
        """Forget one session; returns the subscribers to notify."""
        with self._lock:
            self._sessions.pop(sid, None)
            return self._subscribers.pop(sid, [])

    def revoke_user(self, uid: str) -> tuple[list[str], list[SessionCallback]]:
        """Forget every local session of `uid`; returns its sids and subscribers."""
        with self._lock:
            ended = [sid for sid, (owner, _) in self._sessions.items() if owner == uid]
            callbacks: list[SessionCallback] = []
            for sid in ended:
                del self._sessions[sid]
                callbacks.extend(self._subscribers.pop(sid, []))
            return ended, callbacks

    def _prune_locked(self, now: datetime) -> None:
        expired = [sid for sid, (_, exp) in self._sessions.items() if exp <= now]
        for sid in expired:
            del self._sessions[sid]
            self._subscribers.pop(sid, None)


def _expiry(claims: SessionClaims) -> datetime:
    return claims.expires_at or utcnow()


class LocalIdentityProvider:
    def __init__(
        self,
        credentials: CredentialRepository,
        token_settings: TokenSettings,
        *,
        revocations: SessionRevocationRepository,
        min_password_length: int = 6,
        registry: SessionRegistry | None = None,
    ):
        self._credentials = credentials
        self._revocations = revocations
        self._token_settings = token_settings
        self._min_password_length = min_password_length
        self._registry = registry or SessionRegistry()
        self._issued: list[SessionClaims] | None = None

    # ------------------------------------------------------------------
    # Sign-in / sign-out
    # ------------------------------------------------------------------
    async def verify_credentials(self, email: str, password: str) -> PrincipalHandle:
        normalized = (email or "").strip()
        if not normalized or not password:
            raise IdentityProviderError("auth/invalid-credential")

        credential = await self._credentials.get_credential(normalized)
        if credential is None:
            raise IdentityProviderError("auth/invalid-credential")

        uid, password_hash = credential
        if not verify_password(password, password_hash):
            raise IdentityProviderError("auth/invalid-credential")

        return self._issue(uid, normalized)

    async def sign_out(self, handle: PrincipalHandle) -> None:
        claims = decode_session_token(handle.session_token, self._token_settings)
        if claims is None:
            return
        await self._end_session(claims.sid, _expiry(claims))
        await self._revocations.purge_expired(utcnow())

    async def revoke_user_sessions(self, uid: str) -> None:
        """End every session of `uid` (account deletion), in every process."""
        now = utcnow()
        await self._revocations.revoke_user_sessions(
            uid,
            int(now.timestamp() * 1000),
            now + timedelta(minutes=self._token_settings.ttl_minutes),
        )
        ended, callbacks = self._registry.revoke_user(uid)
        logger.info(
            "revoked user sessions",
            extra={"uid": uid, "local_sessions": len(ended), "subscribers": len(callbacks)},
        )
        await _notify(callbacks, None)

    async def _end_session(self, sid: str, expires_at: datetime) -> None:
        await self._revocations.revoke_session(sid, expires_at)
        await _notify(self._registry.revoke(sid), None)

    # ------------------------------------------------------------------
    # Session notifications
    # ------------------------------------------------------------------
    async def subscribe_session_changes(
        self, session_token: str | None, callback: SessionCallback
    ) -> Unsubscribe:
        claims = decode_session_token(session_token, self._token_settings)
        handle = await self._resolve(claims, session_token)
        if handle is None:
            await callback(None)
            return lambda: None

        unsubscribe = self._registry.subscribe(claims, callback)
        await callback(handle)
        return unsubscribe

    async def _resolve(
        self, claims: SessionClaims | None, session_token: str | None
    ) -> PrincipalHandle | None:
        if claims is None:
            return None
        if await self._revocations.is_revoked(claims.sid, claims.uid, claims.issued_ms):
            return None
        stored = await self._credentials.get_uid_credential(claims.uid)
        if stored is None:
            return None
        return PrincipalHandle(uid=claims.uid, email=stored[0], session_token=session_token)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    async def create_account(
        self, email: str, password: str, *, uid: str | None = None
    ) -> PrincipalHandle:
        normalized = (email or "").strip()
        if not _EMAIL_RE.match(normalized):
            raise IdentityProviderError("auth/invalid-email")
        if len(password or "") < self._min_password_length:
            raise IdentityProviderError("auth/weak-password")

        account_uid = uid or uuid4().hex
        created = await self._credentials.create_credential(
            account_uid, normalized, hash_password(password)
        )
        if not created:
            raise IdentityProviderError("auth/email-already-in-use")

        logger.info("identity account created", extra={"uid": account_uid})
        return self._issue(account_uid, normalized)

    async def set_password(self, uid: str, new_password: str) -> bool:
        if len(new_password or "") < self._min_password_length:
            raise IdentityProviderError("auth/weak-password")
        return await self._credentials.set_password_hash(uid, hash_password(new_password))

    async def find_uid(self, email: str) -> str | None:
        credential = await self._credentials.get_credential((email or "").strip())
        return credential[0] if credential else None

    async def delete_account(self, uid: str) -> bool:
        deleted = await self._credentials.delete_credential(uid)
        await self.revoke_user_sessions(uid)
        return deleted

    @asynccontextmanager
    async def secondary_context(self) -> AsyncIterator["LocalIdentityProvider"]:
        secondary = LocalIdentityProvider(
            self._credentials,
            self._token_settings,
            revocations=self._revocations,
            min_password_length=self._min_password_length,
            registry=self._registry,
        )
        secondary._issued = []
        try:
            yield secondary
        finally:
            for claims in secondary._issued:
                await self._end_session(claims.sid, _expiry(claims))

    # ------------------------------------------------------------------
    def _issue(self, uid: str, email: str) -> PrincipalHandle:
        token, claims, _ = issue_session_token(uid, email, self._token_settings)
        self._registry.register(claims)
        if self._issued is not None:
            self._issued.append(claims)
        return PrincipalHandle(uid=uid, email=email, session_token=token)


async def _notify(callbacks: list[SessionCallback], handle: PrincipalHandle | None) -> None:
    for callback in callbacks:
        await callback(handle)
