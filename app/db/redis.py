"""Redis connection management for the session store.

When REDIS_URL is set, sessions live in Redis so every instance behind the
load balancer sees the same pending ``state`` for a visitor, and abandoned
sessions expire on their own via key TTLs.  Without REDIS_URL (local dev,
tests) ``redis_pool`` is None and the session repo falls back to an
in-process dict.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # return str instead of bytes — less casting
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Ping Redis on startup and close the pool on shutdown.

    A failed ping is logged but does not stop the app from starting; the
    session repo raises SessionStoreError per request instead, which the
    routes turn into a 500.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured — sessions are kept in memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected for session storage")
    except aioredis.RedisError:
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
