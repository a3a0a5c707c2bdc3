"""
In-memory restriction settings singleton.

create_settings_if_absent is a compare-and-set under the lock, so concurrent
first readers converge on one document.
"""

from __future__ import annotations

from threading import Lock

from ....domain.entities import RestrictionSettings


class InMemoryRestrictionSettingsRepository:
    def __init__(self, initial: RestrictionSettings | None = None) -> None:
        self._lock = Lock()
        self._settings = initial

    async def get_settings(self) -> RestrictionSettings | None:
        with self._lock:
            return self._settings

    async def create_settings_if_absent(
        self, settings: RestrictionSettings
    ) -> RestrictionSettings:
        with self._lock:
            if self._settings is None:
                self._settings = settings
            return self._settings

    async def save_settings(self, settings: RestrictionSettings) -> None:
        with self._lock:
            self._settings = settings
