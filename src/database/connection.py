"""
Database connectivity check used by the live integration probe
"""

import asyncpg
import logging

logger = logging.getLogger(__name__)

async def check_database_connection(database_url: str, timeout: float = 10.0) -> bool:
    """Open a short-lived connection and run SELECT 1"""
    conn = await asyncpg.connect(
        database_url,
        timeout=timeout,
        statement_cache_size=0  # pgbouncer compatibility
    )
    try:
        result = await conn.fetchval("SELECT 1")
    finally:
        await conn.close()

    logger.debug("Database connectivity check completed")
    return result == 1
