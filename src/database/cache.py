"""
Cache connectivity check used by the live integration probe
"""

import logging
import redis.asyncio as redis

logger = logging.getLogger(__name__)

async def check_cache_connection(redis_url: str, timeout: float = 10.0) -> bool:
    """PING the cache server"""
    client = redis.from_url(redis_url, socket_connect_timeout=timeout, socket_timeout=timeout)
    try:
        pong = await client.ping()
    finally:
        await client.aclose()

    logger.debug("Cache connectivity check completed")
    return bool(pong)
