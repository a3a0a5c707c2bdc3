"""
Name: Audit emission

Responsibilities:
  - Turn an admin or auth action into an AuditEvent and persist it
  - Attribute it to the acting Principal (or an explicit actor string)

Collaborators:
  - domain/entities.py: AuditEvent, Principal
  - domain/repositories.py: AuditEventRepository
  - crosscutting/logger.py: mask_secrets
  - application/usecases/*, api/auth_routes.py, api/admin_routes.py

Constraints:
  - Best-effort: a failed write is logged and the business flow continues
  - Secret-looking metadata keys are masked; email is not recorded by default
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from .crosscutting.logger import logger, mask_secrets
from .domain.entities import AuditEvent, Principal
from .domain.repositories import AuditEventRepository

ANONYMOUS_ACTOR = "anonymous"


def describe_actor(principal: Principal | None) -> tuple[str, dict[str, Any]]:
    """Actor label plus the principal fields stamped on every event."""
    if principal is None:
        return ANONYMOUS_ACTOR, {"principal_type": "anonymous"}
    return f"user:{principal.uid}", {"principal_type": "user", "role": principal.role.value}


async def emit_audit_event(
    repository: AuditEventRepository | None,
    *,
    action: str,
    principal: Principal | None = None,
    actor: str | None = None,
    target_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    if repository is None:
        return

    label, base = describe_actor(principal)
    event = AuditEvent(
        id=uuid4().hex,
        actor=actor or label,
        action=action,
        target_id=target_id,
        metadata=mask_secrets({**base, **(metadata or {})}),
    )

    try:
        await repository.record_event(event)
    except Exception as exc:
        logger.warning("audit write dropped", extra={"action": action, "error": str(exc)})
