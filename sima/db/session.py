import json
import logging
from typing import AsyncGenerator

import asyncpg
from asyncpg import Connection
from asyncpg.pool import Pool

from sima.core.config import Settings

logger = logging.getLogger(__name__)

db_pool: Pool | None = None


async def _init_connection(conn: Connection) -> None:
    # json/jsonb columns travel as Python objects instead of text.
    for typename in ("json", "jsonb"):
        await conn.set_type_codec(typename, encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def get_pool() -> Pool:
    if db_pool is None:
        raise RuntimeError("Database pool is not initialized.")
    return db_pool


async def connect_db_pool(settings: Settings):
    global db_pool
    if db_pool is None:
        try:
            db_pool = await asyncpg.create_pool(
                dsn=settings.asyncpg_url,
                min_size=settings.DB_POOL_MIN,
                max_size=settings.DB_POOL_MAX,
                timeout=settings.DB_POOL_TIMEOUT,
                init=_init_connection,
            )
            logger.info("AsyncPG connection pool created (min=%s, max=%s).",
                        settings.DB_POOL_MIN, settings.DB_POOL_MAX)
        except Exception:
            logger.exception("Error connecting to database")
            raise


async def close_db_pool():
    global db_pool
    if db_pool:
        await db_pool.close()
        db_pool = None
        logger.info("AsyncPG connection pool closed.")


async def get_db_connection() -> AsyncGenerator[Connection, None]:
    if db_pool is None:
        raise RuntimeError("Database pool is not initialized.")
    async with db_pool.acquire() as connection:
        yield connection
