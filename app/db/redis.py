"""
Redis access for the session store.

One pool per process. Session records live under ``session:{sid}`` and
expire on their own after SESSION_TTL_HOURS; logout deletes them early.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from redis.asyncio import Redis, ConnectionPool

from app.core.config import settings

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"

_redis_pool: Optional[ConnectionPool] = None


def session_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def _redacted(url: str) -> str:
    """Hide the password part of a redis:// URL for log output."""
    parts = urlsplit(url)
    if parts.password:
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@")
        return parts._replace(netloc=netloc).geturl()
    return url


def get_redis_pool() -> ConnectionPool:
    """Create the pool on first use (normally during startup)."""
    global _redis_pool

    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=10,
            decode_responses=True,  # session payloads are JSON text
        )
        logger.info(f"Redis session pool created: {_redacted(settings.REDIS_URL)}")

    return _redis_pool


async def get_redis() -> Redis:
    """FastAPI dependency: a client bound to the shared pool."""
    return Redis(connection_pool=get_redis_pool())


async def close_redis_pool() -> None:
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis session pool closed")


async def check_redis_connection() -> bool:
    """True if the session store answers PING."""
    try:
        client = await get_redis()
        return bool(await client.ping())
    except Exception as e:
        logger.error(f"Session store unreachable: {e}")
        return False
