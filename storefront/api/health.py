"""
Storefront — Health endpoint

Each dependency is probed under its own timeout and reported with its
round-trip latency. Any failed probe turns the service `degraded` (503).
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from storefront.core.config import get_settings
from storefront.core.redis_client import get_redis
from storefront.db.database import engine

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


async def _select_one() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _ping_redis() -> None:
    await get_redis().ping()


async def _probe(name: str, check: Callable[[], Awaitable[None]], timeout: float) -> dict:
    started = time.perf_counter()
    try:
        await asyncio.wait_for(check(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Health probe %s timed out after %.1fs", name, timeout)
        return {"status": "error", "detail": f"timed out after {timeout}s"}
    except Exception as e:
        logger.warning("Health probe %s failed: %s", name, e)
        return {"status": "error", "detail": str(e)[:100]}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@router.get("/health")
async def health_check():
    database, redis = await asyncio.gather(
        _probe("database", _select_one, settings.HEALTH_CHECK_TIMEOUT),
        _probe("redis", _ping_redis, settings.REDIS_PING_TIMEOUT),
    )
    deps = {"database": database, "redis": redis}
    healthy = all(dep["status"] == "ok" for dep in deps.values())

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )
