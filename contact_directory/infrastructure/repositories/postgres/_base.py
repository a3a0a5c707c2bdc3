"""
Shared helpers for the PostgreSQL repositories.

Every query goes through these so logging and PersistenceError wrapping stay
consistent. SQL is always parameterised; values are never interpolated.
"""

from __future__ import annotations

from typing import Iterable

from psycopg_pool import AsyncConnectionPool

from ....crosscutting.exceptions import PersistenceError
from ....crosscutting.logger import logger


class PostgresRepository:
    def __init__(self, pool: AsyncConnectionPool):
        self._pool = pool

    async def _fetchone(
        self, query: str, params: Iterable[object], *, log_msg: str, log_extra: dict
    ) -> tuple | None:
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return await cur.fetchone()
        except Exception as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise PersistenceError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _fetchall(
        self,
        query: str,
        params: Iterable[object] = (),
        *,
        log_msg: str,
        log_extra: dict | None = None,
    ) -> list[tuple]:
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return await cur.fetchall()
        except Exception as exc:
            logger.exception(log_msg, extra={**(log_extra or {}), "error": str(exc)})
            raise PersistenceError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _execute(
        self,
        query: str,
        params: Iterable[object] = (),
        *,
        log_msg: str,
        log_extra: dict | None = None,
    ) -> int:
        """Run a write; returns rowcount."""
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return cur.rowcount
        except Exception as exc:
            logger.exception(log_msg, extra={**(log_extra or {}), "error": str(exc)})
            raise PersistenceError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _executemany(
        self,
        query: str,
        rows: list[tuple],
        *,
        log_msg: str,
        log_extra: dict | None = None,
    ) -> int:
        """Batch write in a single transaction."""
        if not rows:
            return 0
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        await cur.executemany(query, rows)
            return len(rows)
        except Exception as exc:
            logger.exception(log_msg, extra={**(log_extra or {}), "error": str(exc)})
            raise PersistenceError(f"{log_msg}: {exc}", original_error=exc) from exc
