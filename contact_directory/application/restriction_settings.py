"""
Name: Restriction Settings Store

Responsibilities:
  - Load the IP restriction singleton, creating the default on first read
  - Merge admin updates, keep only valid range specs, stamp audit fields
  - Cache the last confirmed value and notify subscribers after each write

Collaborators:
  - domain/repositories.py: RestrictionSettingsRepository
  - identity/ip_classifier.py: range validation
  - identity/route_guard.py: subscriber

Constraints:
  - One instance per process, owned by the composition root (container.py)
  - No role checks here; callers sit behind the admin permission gate
  - Cache and subscribers only see values the repository has confirmed
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Iterable

from ..crosscutting.exceptions import AuthError
from ..crosscutting.logger import logger
from ..domain.entities import RestrictionSettings, utcnow
from ..domain.repositories import RestrictionSettingsRepository
from ..identity.ip_classifier import is_valid_range_spec

SettingsListener = Callable[[RestrictionSettings], Awaitable[None]]

_UPDATABLE_FIELDS = {"enabled", "allowed_ranges", "description"}


def _valid_ranges(ranges: Iterable[str]) -> tuple[str, ...]:
    kept: list[str] = []
    for raw in ranges or ():
        value = (raw or "").strip()
        if value and is_valid_range_spec(value):
            kept.append(value)
    return tuple(kept)


class RestrictionSettingsStore:
    def __init__(self, repository: RestrictionSettingsRepository):
        self._repository = repository
        self._current: RestrictionSettings | None = None
        self._listeners: list[SettingsListener] = []

    @property
    def current(self) -> RestrictionSettings | None:
        """Last confirmed value (None before the first load)."""
        return self._current

    async def load(self, *, reader_id: str | None = None) -> RestrictionSettings:
        """
        Read the singleton, creating the default when absent.

        The create is conditional: concurrent first readers all end up with
        the single stored document.
        """
        settings = await self._repository.get_settings()
        if settings is None:
            settings = await self._repository.create_settings_if_absent(
                RestrictionSettings.default(updated_by=reader_id)
            )
            logger.info(
                "restriction settings initialised",
                extra={"updated_by": settings.updated_by},
            )
        self._current = settings
        return settings

    async def update(self, changes: dict[str, Any], *, actor: str | None) -> RestrictionSettings:
        if not actor:
            raise AuthError.authentication_required()

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown restriction settings fields: {sorted(unknown)}")

        base = self._current or await self.load(reader_id=actor)

        merged: dict[str, Any] = {}
        if "enabled" in changes:
            merged["enabled"] = bool(changes["enabled"])
        if "allowed_ranges" in changes:
            merged["allowed_ranges"] = _valid_ranges(changes["allowed_ranges"])
        if "description" in changes:
            merged["description"] = changes["description"] or ""

        updated = base.with_changes(**merged, updated_at=utcnow(), updated_by=actor)
        await self._repository.save_settings(updated)

        self._current = updated
        logger.info(
            "restriction settings updated",
            extra={
                "updated_by": actor,
                "enabled": updated.enabled,
                "range_count": len(updated.allowed_ranges),
            },
        )
        for listener in list(self._listeners):
            await listener(updated)
        return updated

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
