"""asyncpg pool lifecycle and owner-scoped connections.

Every row in source_documents / transcripts / generated_artifacts belongs to
one owner. ``owner_connection()`` opens a transaction with ``app.user_id``
set locally; the RLS policies from the Alembic migration do the filtering.
An empty owner is refused rather than run unscoped.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

_APPLICATION_NAME = "eduflow-content-service"


def _cloud_run_dsn() -> str:
    user = os.environ.get("ALLOYDB_USER", "eduflow")
    password = os.environ.get("ALLOYDB_PASSWORD", "")
    host = os.environ.get("ALLOYDB_HOST")
    name = os.environ.get("ALLOYDB_DB", "eduflow")
    return f"postgresql://{user}:{password}@{host}/{name}"


def _local_dsn() -> str:
    env = os.environ.get
    return (
        f"postgresql://{env('DB_USER', 'eduflow')}:{env('DB_PASSWORD', 'eduflow')}"
        f"@{env('DB_HOST', 'localhost')}:{env('DB_PORT', '5432')}/{env('DB_NAME', 'eduflow')}"
        f"?sslmode={env('DB_SSLMODE', 'disable')}"
    )


class DatabaseConfig:
    """Resolves the DSN: DATABASE_URL, then AlloyDB on Cloud Run, then local DB_* vars."""

    @staticmethod
    def get_connection_string() -> str:
        if url := os.environ.get("DATABASE_URL"):
            return url
        if os.environ.get("K_SERVICE") or os.environ.get("CLOUD_RUN_JOB"):
            return _cloud_run_dsn()
        return _local_dsn()


async def _init_connection(conn: asyncpg.Connection) -> None:
    # generated_artifacts.content is JSONB; decode it to Python objects
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def get_pool() -> asyncpg.Pool:
    """Return the process-wide pool, creating it on first use (app startup)."""
    global _pool  # noqa: PLW0603
    if _pool is None:
        logger.info("Creating database pool (host hidden for security)")
        _pool = await asyncpg.create_pool(
            dsn=DatabaseConfig.get_connection_string(),
            min_size=1,
            max_size=int(os.environ.get("DB_POOL_MAX", "5")),
            command_timeout=30,
            server_settings={"application_name": _APPLICATION_NAME},
            init=_init_connection,
        )
    return _pool


async def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is None:
        return
    await _pool.close()
    _pool = None
    logger.info("Database pool closed")


async def check_db_connection() -> bool:
    """Readiness probe: True when a trivial query succeeds."""
    try:
        pool = await get_pool()
        await pool.fetchval("SELECT 1")
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError):
        logger.exception("Database health check failed")
        return False
    return True


@asynccontextmanager
async def owner_connection(pool: asyncpg.Pool, owner_id: str) -> AsyncIterator[asyncpg.Connection]:
    """Yield a connection from ``pool`` inside a transaction scoped to ``owner_id``.

    ``set_config(..., is_local => true)`` discards the owner when the
    transaction ends, so pooled connections never leak it.

    Raises ValueError if owner_id is empty.
    """
    if not owner_id:
        raise ValueError("owner_id is required (fail-closed)")

    async with pool.acquire() as conn, conn.transaction():
        await conn.execute("SELECT set_config('app.user_id', $1, true)", owner_id)
        yield conn
