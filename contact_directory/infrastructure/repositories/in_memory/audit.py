"""In-memory audit log (append-only, newest first on read)."""

from __future__ import annotations

from dataclasses import replace
from threading import Lock

from ....domain.entities import AuditEvent, utcnow


class InMemoryAuditEventRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._events: list[AuditEvent] = []

    async def record_event(self, event: AuditEvent) -> None:
        stored = replace(event, created_at=event.created_at or utcnow())
        with self._lock:
            self._events.append(stored)

    async def list_events(self, *, limit: int = 100) -> list[AuditEvent]:
        if limit <= 0:
            return []
        with self._lock:
            return [replace(e) for e in reversed(self._events[-limit:])]
