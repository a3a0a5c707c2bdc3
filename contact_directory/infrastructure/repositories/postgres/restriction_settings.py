"""
Name: PostgresRestrictionSettingsRepository

Responsibilities:
  - Singleton row in `app_settings` keyed by the fixed id `ipRestrictions`

Notes:
  - create_settings_if_absent uses INSERT ... ON CONFLICT DO NOTHING and then
    reads back, so concurrent first readers all see the single winner
"""

from __future__ import annotations

from ....domain.entities import RESTRICTION_SETTINGS_ID, RestrictionSettings
from ._base import PostgresRepository

_SETTINGS_COLUMNS = "enabled, allowed_ranges, description, updated_at, updated_by"


def _row_to_settings(row: tuple) -> RestrictionSettings:
    return RestrictionSettings(
        enabled=bool(row[0]),
        allowed_ranges=tuple(row[1] or ()),
        description=row[2] or "",
        updated_at=row[3],
        updated_by=row[4],
    )


def _params(settings: RestrictionSettings) -> tuple:
    return (
        RESTRICTION_SETTINGS_ID,
        settings.enabled,
        list(settings.allowed_ranges),
        settings.description,
        settings.updated_at,
        settings.updated_by,
    )


class PostgresRestrictionSettingsRepository(PostgresRepository):
    async def get_settings(self) -> RestrictionSettings | None:
        row = await self._fetchone(
            f"SELECT {_SETTINGS_COLUMNS} FROM app_settings WHERE id = %s",
            (RESTRICTION_SETTINGS_ID,),
            log_msg="PostgresRestrictionSettingsRepository: get_settings failed",
            log_extra={},
        )
        return _row_to_settings(row) if row else None

    async def create_settings_if_absent(
        self, settings: RestrictionSettings
    ) -> RestrictionSettings:
        await self._execute(
            f"""
            INSERT INTO app_settings (id, {_SETTINGS_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            """,
            _params(settings),
            log_msg="PostgresRestrictionSettingsRepository: create failed",
        )
        stored = await self.get_settings()
        return stored if stored is not None else settings

    async def save_settings(self, settings: RestrictionSettings) -> None:
        await self._execute(
            f"""
            INSERT INTO app_settings (id, {_SETTINGS_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                enabled = EXCLUDED.enabled,
                allowed_ranges = EXCLUDED.allowed_ranges,
                description = EXCLUDED.description,
                updated_at = EXCLUDED.updated_at,
                updated_by = EXCLUDED.updated_by
            """,
            _params(settings),
            log_msg="PostgresRestrictionSettingsRepository: save failed",
            log_extra={"updated_by": settings.updated_by},
        )
