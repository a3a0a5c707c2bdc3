"""PostgresSessionRevocationRepository: logouts and per-user cut-offs shared by all workers."""

from __future__ import annotations

from datetime import datetime

from ._base import PostgresRepository


class PostgresSessionRevocationRepository(PostgresRepository):
    async def revoke_session(self, sid: str, expires_at: datetime) -> None:
        await self._execute(
            """
            INSERT INTO revoked_sessions (sid, expires_at)
            VALUES (%s, %s)
            ON CONFLICT (sid) DO UPDATE
              SET expires_at = GREATEST(revoked_sessions.expires_at, EXCLUDED.expires_at)
            """,
            (sid, expires_at),
            log_msg="PostgresSessionRevocationRepository: revoke_session failed",
            log_extra={"sid": sid},
        )

    async def revoke_user_sessions(
        self, uid: str, cutoff_ms: int, expires_at: datetime
    ) -> None:
        await self._execute(
            """
            INSERT INTO session_cutoffs (uid, cutoff_ms, expires_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (uid) DO UPDATE
              SET cutoff_ms = GREATEST(session_cutoffs.cutoff_ms, EXCLUDED.cutoff_ms),
                  expires_at = GREATEST(session_cutoffs.expires_at, EXCLUDED.expires_at)
            """,
            (uid, cutoff_ms, expires_at),
            log_msg="PostgresSessionRevocationRepository: revoke_user_sessions failed",
            log_extra={"uid": uid},
        )

    async def is_revoked(self, sid: str, uid: str, issued_ms: int) -> bool:
        row = await self._fetchone(
            """
            SELECT
              EXISTS (SELECT 1 FROM revoked_sessions WHERE sid = %s)
              OR EXISTS (
                SELECT 1 FROM session_cutoffs WHERE uid = %s AND cutoff_ms >= %s
              )
            """,
            (sid, uid, issued_ms),
            log_msg="PostgresSessionRevocationRepository: is_revoked failed",
            log_extra={"sid": sid},
        )
        return bool(row and row[0])

    async def purge_expired(self, now: datetime) -> int:
        sessions = await self._execute(
            "DELETE FROM revoked_sessions WHERE expires_at <= %s",
            (now,),
            log_msg="PostgresSessionRevocationRepository: purge revoked_sessions failed",
        )
        cutoffs = await self._execute(
            "DELETE FROM session_cutoffs WHERE expires_at <= %s",
            (now,),
            log_msg="PostgresSessionRevocationRepository: purge session_cutoffs failed",
        )
        return sessions + cutoffs
