"""
Name: PostgresContactRepository

Responsibilities:
  - Contacts in the `contacts` table, ordered by name
  - Batch insert in one transaction for imports

Constraints:
  - Column list kept in one place (_CONTACT_COLUMNS) to match alembic 001
"""

from __future__ import annotations

from ....domain.entities import CONTACT_TEXT_FIELDS, Contact, utcnow
from ._base import PostgresRepository

_CONTACT_COLUMNS = ", ".join(
    ("id", *CONTACT_TEXT_FIELDS, "created_at", "updated_at", "created_by")
)
_PLACEHOLDERS = ", ".join(["%s"] * (len(CONTACT_TEXT_FIELDS) + 4))


def _row_to_contact(row: tuple) -> Contact:
    values = dict(zip(CONTACT_TEXT_FIELDS, row[1 : 1 + len(CONTACT_TEXT_FIELDS)]))
    tail = row[1 + len(CONTACT_TEXT_FIELDS) :]
    return Contact(
        id=row[0],
        **{k: v or "" for k, v in values.items()},
        created_at=tail[0],
        updated_at=tail[1],
        created_by=tail[2],
    )


def _contact_params(contact: Contact) -> tuple:
    now = utcnow()
    return (
        contact.id,
        *(getattr(contact, name) for name in CONTACT_TEXT_FIELDS),
        contact.created_at or now,
        contact.updated_at or now,
        contact.created_by,
    )


_INSERT_SQL = f"INSERT INTO contacts ({_CONTACT_COLUMNS}) VALUES ({_PLACEHOLDERS})"


class PostgresContactRepository(PostgresRepository):
    async def list_contacts(self) -> list[Contact]:
        rows = await self._fetchall(
            f"SELECT {_CONTACT_COLUMNS} FROM contacts ORDER BY name ASC, id ASC",
            log_msg="PostgresContactRepository: list_contacts failed",
        )
        return [_row_to_contact(r) for r in rows]

    async def get_contact(self, contact_id: str) -> Contact | None:
        row = await self._fetchone(
            f"SELECT {_CONTACT_COLUMNS} FROM contacts WHERE id = %s",
            (contact_id,),
            log_msg="PostgresContactRepository: get_contact failed",
            log_extra={"contact_id": contact_id},
        )
        return _row_to_contact(row) if row else None

    async def add_contact(self, contact: Contact) -> None:
        await self._execute(
            _INSERT_SQL,
            _contact_params(contact),
            log_msg="PostgresContactRepository: add_contact failed",
            log_extra={"contact_id": contact.id},
        )

    async def add_contacts(self, contacts: list[Contact]) -> int:
        return await self._executemany(
            _INSERT_SQL,
            [_contact_params(c) for c in contacts],
            log_msg="PostgresContactRepository: add_contacts failed",
            log_extra={"count": len(contacts)},
        )

    async def update_contact(self, contact_id: str, **changes) -> Contact | None:
        unknown = set(changes) - set(CONTACT_TEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown contact fields: {sorted(unknown)}")
        if not changes:
            return await self.get_contact(contact_id)

        columns = [name for name in CONTACT_TEXT_FIELDS if name in changes]
        assignments = ", ".join(f"{name} = %s" for name in columns)
        row = await self._fetchone(
            f"""
            UPDATE contacts SET {assignments}, updated_at = %s
            WHERE id = %s
            RETURNING {_CONTACT_COLUMNS}
            """,
            (*(changes[n] for n in columns), utcnow(), contact_id),
            log_msg="PostgresContactRepository: update_contact failed",
            log_extra={"contact_id": contact_id},
        )
        return _row_to_contact(row) if row else None

    async def delete_contact(self, contact_id: str) -> bool:
        deleted = await self._execute(
            "DELETE FROM contacts WHERE id = %s",
            (contact_id,),
            log_msg="PostgresContactRepository: delete_contact failed",
            log_extra={"contact_id": contact_id},
        )
        return deleted == 1

    async def delete_all_contacts(self) -> int:
        return await self._execute(
            "DELETE FROM contacts",
            log_msg="PostgresContactRepository: delete_all_contacts failed",
        )
