"""
Name: PostgresProfileRepository

Responsibilities:
  - Profiles in the `profiles` table (contract with alembic 001)
  - Map rows to Profile and validate Role / ProfileStatus strictly

Constraints:
  - Returns None when absent (not-found is not an error)
  - Unknown enum values in the table raise PersistenceError (schema drift)
  - Ordering: email ASC
"""

from __future__ import annotations

from ....crosscutting.exceptions import PersistenceError
from ....domain.entities import Profile, ProfileStatus, Role, utcnow
from ._base import PostgresRepository

_PROFILE_COLUMNS = "uid, email, name, role, status, created_at, updated_at, created_by"
_UPDATABLE = ("email", "name", "role", "status")


def _row_to_profile(row: tuple) -> Profile:
    try:
        role = Role(row[3])
        status = ProfileStatus(row[4])
    except ValueError as exc:
        raise PersistenceError(f"Invalid profile row for uid {row[0]}") from exc
    return Profile(
        uid=row[0],
        email=row[1],
        name=row[2],
        role=role,
        status=status,
        created_at=row[5],
        updated_at=row[6],
        created_by=row[7],
    )


class PostgresProfileRepository(PostgresRepository):
    async def get_profile(self, uid: str) -> Profile | None:
        row = await self._fetchone(
            f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE uid = %s",
            (uid,),
            log_msg="PostgresProfileRepository: get_profile failed",
            log_extra={"uid": uid},
        )
        return _row_to_profile(row) if row else None

    async def find_by_email(self, email: str) -> Profile | None:
        row = await self._fetchone(
            f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE lower(email) = lower(%s)",
            (email.strip(),),
            log_msg="PostgresProfileRepository: find_by_email failed",
            log_extra={},
        )
        return _row_to_profile(row) if row else None

    async def list_profiles(self, *, include_deleted: bool = False) -> list[Profile]:
        where = "" if include_deleted else "WHERE status <> %s"
        params = () if include_deleted else (ProfileStatus.DELETED.value,)
        rows = await self._fetchall(
            f"SELECT {_PROFILE_COLUMNS} FROM profiles {where} ORDER BY lower(email) ASC",
            params,
            log_msg="PostgresProfileRepository: list_profiles failed",
        )
        return [_row_to_profile(r) for r in rows]

    async def save_profile(self, profile: Profile) -> None:
        now = utcnow()
        await self._execute(
            """
            INSERT INTO profiles (uid, email, name, role, status, created_at, updated_at, created_by)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (uid) DO UPDATE SET
                email = EXCLUDED.email,
                name = EXCLUDED.name,
                role = EXCLUDED.role,
                status = EXCLUDED.status,
                created_at = EXCLUDED.created_at,
                updated_at = EXCLUDED.updated_at,
                created_by = EXCLUDED.created_by
            """,
            (
                profile.uid,
                profile.email,
                profile.name,
                profile.role.value,
                profile.status.value,
                profile.created_at or now,
                profile.updated_at or now,
                profile.created_by,
            ),
            log_msg="PostgresProfileRepository: save_profile failed",
            log_extra={"uid": profile.uid},
        )

    async def update_profile(self, uid: str, **changes) -> Profile | None:
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        if not changes:
            return await self.get_profile(uid)

        columns = [name for name in _UPDATABLE if name in changes]
        assignments = ", ".join(f"{name} = %s" for name in columns)
        values = [getattr(changes[n], "value", changes[n]) for n in columns]
        row = await self._fetchone(
            f"""
            UPDATE profiles SET {assignments}, updated_at = %s
            WHERE uid = %s
            RETURNING {_PROFILE_COLUMNS}
            """,
            (*values, utcnow(), uid),
            log_msg="PostgresProfileRepository: update_profile failed",
            log_extra={"uid": uid, "fields": columns},
        )
        return _row_to_profile(row) if row else None
