"""
Name: InMemoryProfileRepository

Responsibilities:
  - Keep profiles in memory (tests / local dev)
  - Enforce email uniqueness (case-insensitive) across all statuses
  - Deterministic ordering aligned with Postgres: ORDER BY email

Constraints:
  - Thread-safe: every read/write runs under a Lock (no awaits inside)
  - Defensive copies: callers never share the stored objects
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock

from ....domain.entities import Profile, ProfileStatus, utcnow

_UPDATABLE = {"email", "name", "role", "status"}


class InMemoryProfileRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._profiles: dict[str, Profile] = {}

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    async def get_profile(self, uid: str) -> Profile | None:
        with self._lock:
            profile = self._profiles.get(uid)
            return replace(profile) if profile else None

    async def find_by_email(self, email: str) -> Profile | None:
        key = self._normalize_email(email)
        with self._lock:
            for profile in self._profiles.values():
                if self._normalize_email(profile.email) == key:
                    return replace(profile)
        return None

    async def list_profiles(self, *, include_deleted: bool = False) -> list[Profile]:
        with self._lock:
            items = [
                replace(p)
                for p in self._profiles.values()
                if include_deleted or p.status != ProfileStatus.DELETED
            ]
        return sorted(items, key=lambda p: self._normalize_email(p.email))

    async def save_profile(self, profile: Profile) -> None:
        key = self._normalize_email(profile.email)
        with self._lock:
            for uid, existing in self._profiles.items():
                if uid != profile.uid and self._normalize_email(existing.email) == key:
                    raise ValueError(f"Email already used by profile {uid}")
            self._profiles[profile.uid] = replace(profile)

    async def update_profile(self, uid: str, **changes) -> Profile | None:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        with self._lock:
            current = self._profiles.get(uid)
            if current is None:
                return None
            updated = replace(current, **changes, updated_at=utcnow())
            self._profiles[uid] = updated
            return replace(updated)
