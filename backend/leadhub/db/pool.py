import logging
from typing import Any, Optional, Sequence, Tuple

from psycopg_pool import AsyncConnectionPool
from psycopg.rows import dict_row

from ..core.config import settings

logger = logging.getLogger(__name__)

pool: Optional[AsyncConnectionPool] = None


async def init_pool():
    global pool
    if pool is None:
        pool = AsyncConnectionPool(
            conninfo=settings.DATABASE_URL,
            max_size=settings.DB_POOL_MAX_SIZE,
            kwargs={"autocommit": True},
            open=False,
        )
        await pool.open()
        logger.info("Connection pool opened (max_size=%s)", settings.DB_POOL_MAX_SIZE)


async def close_pool():
    global pool
    if pool:
        await pool.close()
        pool = None
        logger.info("Connection pool closed")


async def execute(query: str, params: Optional[Sequence[Any]] = None) -> int:
    assert pool is not None, "DB pool not initialized"
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params or [])
            return cur.rowcount


async def fetch_all(query: str, params: Optional[Sequence[Any]] = None):
    assert pool is not None, "DB pool not initialized"
    async with pool.connection() as conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, params or [])
            return await cur.fetchall()


async def fetch_one(query: str, params: Optional[Sequence[Any]] = None):
    assert pool is not None, "DB pool not initialized"
    async with pool.connection() as conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, params or [])
            return await cur.fetchone()


def build_set_clause(fields: dict) -> Tuple[str, list]:
    """Turn {column: value} into 'a = %s, b = %s' plus params. Columns must be trusted names."""
    clauses = [f"{column} = %s" for column in fields]
    return ", ".join(clauses), list(fields.values())
