"""In-memory credential store for the local identity provider (tests / local dev)."""

from __future__ import annotations

from threading import Lock


class InMemoryCredentialRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        # uid -> (email, password_hash)
        self._by_uid: dict[str, tuple[str, str]] = {}

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    async def get_credential(self, email: str) -> tuple[str, str] | None:
        key = self._normalize_email(email)
        with self._lock:
            for uid, (stored_email, password_hash) in self._by_uid.items():
                if self._normalize_email(stored_email) == key:
                    return uid, password_hash
        return None

    async def get_uid_credential(self, uid: str) -> tuple[str, str] | None:
        with self._lock:
            return self._by_uid.get(uid)

    async def create_credential(self, uid: str, email: str, password_hash: str) -> bool:
        key = self._normalize_email(email)
        with self._lock:
            if uid in self._by_uid:
                return False
            if any(self._normalize_email(e) == key for e, _ in self._by_uid.values()):
                return False
            self._by_uid[uid] = (email.strip(), password_hash)
            return True

    async def set_password_hash(self, uid: str, password_hash: str) -> bool:
        with self._lock:
            current = self._by_uid.get(uid)
            if current is None:
                return False
            self._by_uid[uid] = (current[0], password_hash)
            return True

    async def delete_credential(self, uid: str) -> bool:
        with self._lock:
            return self._by_uid.pop(uid, None) is not None
