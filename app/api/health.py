"""Health and readiness endpoints.

  /health — liveness plus dependency status.  Always 200; the ``status``
            field says "degraded" when the session store is unreachable.
  /ready  — readiness.  503 when a configured Redis session store cannot
            be reached, since /login and /callback would only return 500s.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Response

from app.db.redis import redis_pool

router = APIRouter(tags=["health"])


async def _redis_status() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except aioredis.RedisError:
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    checks = {"session_store": await _redis_status()}
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _redis_status() == "degraded":
        return Response(status_code=503)
    return Response(status_code=200)
