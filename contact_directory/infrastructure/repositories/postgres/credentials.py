"""PostgresCredentialRepository: password hashes for the local identity provider."""

from __future__ import annotations

from ._base import PostgresRepository


class PostgresCredentialRepository(PostgresRepository):
    async def get_credential(self, email: str) -> tuple[str, str] | None:
        row = await self._fetchone(
            "SELECT uid, password_hash FROM credentials WHERE lower(email) = lower(%s)",
            (email.strip(),),
            log_msg="PostgresCredentialRepository: get_credential failed",
            log_extra={},
        )
        return (row[0], row[1]) if row else None

    async def get_uid_credential(self, uid: str) -> tuple[str, str] | None:
        row = await self._fetchone(
            "SELECT email, password_hash FROM credentials WHERE uid = %s",
            (uid,),
            log_msg="PostgresCredentialRepository: get_uid_credential failed",
            log_extra={"uid": uid},
        )
        return (row[0], row[1]) if row else None

    async def create_credential(self, uid: str, email: str, password_hash: str) -> bool:
        inserted = await self._execute(
            """
            INSERT INTO credentials (uid, email, password_hash)
            VALUES (%s, %s, %s)
            ON CONFLICT DO NOTHING
            """,
            (uid, email.strip(), password_hash),
            log_msg="PostgresCredentialRepository: create_credential failed",
            log_extra={"uid": uid},
        )
        return inserted == 1

    async def set_password_hash(self, uid: str, password_hash: str) -> bool:
        updated = await self._execute(
            "UPDATE credentials SET password_hash = %s WHERE uid = %s",
            (password_hash, uid),
            log_msg="PostgresCredentialRepository: set_password_hash failed",
            log_extra={"uid": uid},
        )
        return updated == 1

    async def delete_credential(self, uid: str) -> bool:
        deleted = await self._execute(
            "DELETE FROM credentials WHERE uid = %s",
            (uid,),
            log_msg="PostgresCredentialRepository: delete_credential failed",
            log_extra={"uid": uid},
        )
        return deleted == 1
