"""In-memory session revocations (tests / single-process local dev)."""

from __future__ import annotations

from datetime import datetime
from threading import Lock


class InMemorySessionRevocationRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        # sid -> expires_at
        self._sessions: dict[str, datetime] = {}
        # uid -> (cutoff_ms, expires_at)
        self._cutoffs: dict[str, tuple[int, datetime]] = {}

    async def revoke_session(self, sid: str, expires_at: datetime) -> None:
        with self._lock:
            current = self._sessions.get(sid)
            self._sessions[sid] = max(current, expires_at) if current else expires_at

    async def revoke_user_sessions(
        self, uid: str, cutoff_ms: int, expires_at: datetime
    ) -> None:
        with self._lock:
            current = self._cutoffs.get(uid)
            if current is not None:
                cutoff_ms = max(cutoff_ms, current[0])
                expires_at = max(expires_at, current[1])
            self._cutoffs[uid] = (cutoff_ms, expires_at)

    async def is_revoked(self, sid: str, uid: str, issued_ms: int) -> bool:
        with self._lock:
            if sid in self._sessions:
                return True
            cutoff = self._cutoffs.get(uid)
            return cutoff is not None and issued_ms <= cutoff[0]

    async def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired_sids = [sid for sid, exp in self._sessions.items() if exp <= now]
            expired_uids = [uid for uid, (_, exp) in self._cutoffs.items() if exp <= now]
            for sid in expired_sids:
                del self._sessions[sid]
            for uid in expired_uids:
                del self._cutoffs[uid]
            return len(expired_sids) + len(expired_uids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions) + len(self._cutoffs)
