"""
Name: InMemoryContactRepository

Responsibilities:
  - Contacts in memory, ordered by name like the Postgres adapter
  - Batch insert / delete-all for bulk admin operations

Constraints:
  - Thread-safe (Lock), defensive copies
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock

from ....domain.entities import CONTACT_TEXT_FIELDS, Contact, utcnow


class InMemoryContactRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._contacts: dict[str, Contact] = {}

    async def list_contacts(self) -> list[Contact]:
        with self._lock:
            items = [replace(c) for c in self._contacts.values()]
        return sorted(items, key=lambda c: ((c.name or "").lower(), c.id))

    async def get_contact(self, contact_id: str) -> Contact | None:
        with self._lock:
            contact = self._contacts.get(contact_id)
            return replace(contact) if contact else None

    async def add_contact(self, contact: Contact) -> None:
        with self._lock:
            self._contacts[contact.id] = replace(contact)

    async def add_contacts(self, contacts: list[Contact]) -> int:
        with self._lock:
            for contact in contacts:
                self._contacts[contact.id] = replace(contact)
        return len(contacts)

    async def update_contact(self, contact_id: str, **changes) -> Contact | None:
        unknown = set(changes) - set(CONTACT_TEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown contact fields: {sorted(unknown)}")
        with self._lock:
            current = self._contacts.get(contact_id)
            if current is None:
                return None
            updated = replace(current, **changes, updated_at=utcnow())
            self._contacts[contact_id] = updated
            return replace(updated)

    async def delete_contact(self, contact_id: str) -> bool:
        with self._lock:
            return self._contacts.pop(contact_id, None) is not None

    async def delete_all_contacts(self) -> int:
        with self._lock:
            count = len(self._contacts)
            self._contacts.clear()
        return count
