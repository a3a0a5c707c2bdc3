"""
Name: PostgreSQL async connection pool (process singleton)

Responsibilities:
  - Open the AsyncConnectionPool once per process (lifespan) and close it
  - Hand the pool to the postgres repositories
  - Set statement_timeout on each fresh connection

Collaborators:
  - psycopg_pool.AsyncConnectionPool
  - infrastructure/repositories/postgres/*
  - api/main.py (lifespan)

Constraints:
  - Opening twice or using it unopened is a PersistenceError (maps to 503)
"""

from __future__ import annotations

import asyncio

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from ...crosscutting.exceptions import PersistenceError
from ...crosscutting.logger import logger

STATEMENT_TIMEOUT_MS = 30_000


class PoolStateError(PersistenceError):
    """Pool opened twice, or used before it was opened."""


class _PoolHolder:
    def __init__(self) -> None:
        self.pool: AsyncConnectionPool | None = None
        self.lock = asyncio.Lock()


_holder = _PoolHolder()


async def _on_connect(conn: AsyncConnection) -> None:
    await conn.execute(f"SET statement_timeout = {STATEMENT_TIMEOUT_MS}")
    await conn.commit()


async def init_pool(database_url: str, min_size: int, max_size: int) -> AsyncConnectionPool:
    async with _holder.lock:
        if _holder.pool is not None:
            raise PoolStateError("Database pool is already open.")

        pool = AsyncConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_on_connect,
            open=False,
        )
        await pool.open()
        _holder.pool = pool

    logger.info("database pool open", extra={"min_size": min_size, "max_size": max_size})
    return pool


def get_pool() -> AsyncConnectionPool:
    if _holder.pool is None:
        raise PoolStateError("Database pool is not open.")
    return _holder.pool


async def close_pool() -> None:
    """Safe to call when the pool was never opened."""
    async with _holder.lock:
        pool, _holder.pool = _holder.pool, None
    if pool is not None:
        await pool.close()
        logger.info("database pool closed")
