"""PostgresAuditEventRepository: append-only `audit_events` table."""

from __future__ import annotations

from psycopg.types.json import Json

from ....domain.entities import AuditEvent, utcnow
from ._base import PostgresRepository


class PostgresAuditEventRepository(PostgresRepository):
    async def record_event(self, event: AuditEvent) -> None:
        await self._execute(
            """
            INSERT INTO audit_events (id, actor, action, target_id, metadata, created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            (
                event.id,
                event.actor,
                event.action,
                event.target_id,
                Json(event.metadata or {}),
                event.created_at or utcnow(),
            ),
            log_msg="PostgresAuditEventRepository: record_event failed",
            log_extra={"action": event.action},
        )

    async def list_events(self, *, limit: int = 100) -> list[AuditEvent]:
        if limit <= 0:
            return []
        rows = await self._fetchall(
            """
            SELECT id, actor, action, target_id, metadata, created_at
            FROM audit_events
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (limit,),
            log_msg="PostgresAuditEventRepository: list_events failed",
        )
        return [
            AuditEvent(
                id=r[0],
                actor=r[1],
                action=r[2],
                target_id=r[3],
                metadata=r[4] or {},
                created_at=r[5],
            )
            for r in rows
        ]
