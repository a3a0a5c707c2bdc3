"""
Name: Contact directory use cases

Responsibilities:
  - List / search, read, create, update and delete contacts
  - Bulk operations for administrators: delete all, import, export

Collaborators:
  - domain/repositories.py: ContactRepository, AuditEventRepository
  - audit.py

Notes:
  - Search is a case-insensitive substring match over name, title, company,
    address and notes
  - Import takes already-decoded records (one dict per contact); rows without
    a name are skipped and reported, the rest are written in one batch
  - Capability checks (edit / administer) live in the API dependencies
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping
from uuid import uuid4

from ...audit import emit_audit_event
from ...domain.entities import CONTACT_TEXT_FIELDS, Contact, Principal, utcnow
from ...domain.repositories import AuditEventRepository, ContactRepository
from .results import BulkResult, Result, UseCaseErrorCode


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    return {
        name: str(fields.get(name) or "").strip()
        for name in CONTACT_TEXT_FIELDS
        if name in fields
    }


def _not_found(contact_id: str) -> Result:
    return Result.failure(
        UseCaseErrorCode.NOT_FOUND, f"Contact '{contact_id}' not found"
    )


def _name_required() -> Result:
    return Result.failure(UseCaseErrorCode.VALIDATION_ERROR, "Contact name is required")


def _new_contact(fields: dict[str, str], actor: Principal) -> Contact:
    now = utcnow()
    return Contact(
        id=uuid4().hex,
        **{name: fields.get(name, "") for name in CONTACT_TEXT_FIELDS},
        created_at=now,
        updated_at=now,
        created_by=actor.uid,
    )


class ContactDirectory:
    """Application service for the contact directory (one instance per request)."""

    def __init__(
        self,
        contacts: ContactRepository,
        audit_repo: AuditEventRepository | None = None,
    ):
        self._contacts = contacts
        self._audit_repo = audit_repo

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def list_contacts(self, query: str | None = None) -> list[Contact]:
        contacts = await self._contacts.list_contacts()
        if not query or not query.strip():
            return contacts
        return [c for c in contacts if c.matches(query)]

    async def get_contact(self, contact_id: str) -> Result[Contact]:
        contact = await self._contacts.get_contact(contact_id)
        if contact is None:
            return _not_found(contact_id)
        return Result.success(contact)

    # ------------------------------------------------------------------
    # Single-contact writes
    # ------------------------------------------------------------------
    async def create_contact(
        self, fields: Mapping[str, Any], *, actor: Principal
    ) -> Result[Contact]:
        cleaned = _clean_fields(fields)
        if not cleaned.get("name"):
            return _name_required()

        contact = _new_contact(cleaned, actor)
        await self._contacts.add_contact(contact)
        await emit_audit_event(
            self._audit_repo,
            action="contacts.create",
            principal=actor,
            target_id=contact.id,
        )
        return Result.success(contact)

    async def update_contact(
        self, contact_id: str, fields: Mapping[str, Any], *, actor: Principal
    ) -> Result[Contact]:
        cleaned = _clean_fields(fields)
        if "name" in cleaned and not cleaned["name"]:
            return _name_required()

        updated = await self._contacts.update_contact(contact_id, **cleaned)
        if updated is None:
            return _not_found(contact_id)

        await emit_audit_event(
            self._audit_repo,
            action="contacts.update",
            principal=actor,
            target_id=contact_id,
            metadata={"fields": sorted(cleaned)},
        )
        return Result.success(updated)

    async def delete_contact(self, contact_id: str, *, actor: Principal) -> Result[None]:
        if not await self._contacts.delete_contact(contact_id):
            return _not_found(contact_id)
        await emit_audit_event(
            self._audit_repo,
            action="contacts.delete",
            principal=actor,
            target_id=contact_id,
        )
        return Result.success(None)

    # ------------------------------------------------------------------
    # Bulk (admin)
    # ------------------------------------------------------------------
    async def delete_all_contacts(self, *, actor: Principal) -> BulkResult:
        count = await self._contacts.delete_all_contacts()
        await emit_audit_event(
            self._audit_repo,
            action="contacts.delete_all",
            principal=actor,
            metadata={"count": count},
        )
        return BulkResult(count=count)

    async def import_contacts(
        self, records: Iterable[Mapping[str, Any]], *, actor: Principal
    ) -> Result[BulkResult]:
        accepted: list[Contact] = []
        skipped: list[dict] = []
        for index, record in enumerate(records):
            cleaned = _clean_fields(record)
            if not cleaned.get("name"):
                skipped.append({"row": index + 1, "reason": "Missing name"})
                continue
            accepted.append(_new_contact(cleaned, actor))

        if not accepted:
            return Result.failure(
                UseCaseErrorCode.VALIDATION_ERROR,
                "No valid contacts found in import",
            )

        written = await self._contacts.add_contacts(accepted)
        await emit_audit_event(
            self._audit_repo,
            action="contacts.import",
            principal=actor,
            metadata={"imported": written, "skipped": len(skipped)},
        )
        return Result.success(BulkResult(count=written, skipped=skipped))

    async def export_contacts(self, *, actor: Principal) -> list[dict[str, str]]:
        contacts = await self._contacts.list_contacts()
        await emit_audit_event(
            self._audit_repo,
            action="contacts.export",
            principal=actor,
            metadata={"count": len(contacts)},
        )
        return [c.text_fields() for c in contacts]
