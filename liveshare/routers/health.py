# liveshare/routers/health.py
# Health check endpoints for monitoring and load balancers
# Provides liveness and readiness probes

import time
import asyncio
import logging
from typing import Dict, Any
from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from redis.asyncio import from_url as redis_from_url
from sqlalchemy import text

from liveshare.config import settings
from liveshare.db.base import async_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

CHECK_TIMEOUT_SECONDS = 3.0


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: float
    version: str = "1.0.0"
    checks: Dict[str, Dict[str, Any]] = {}


class ComponentHealth(BaseModel):
    """Individual component health."""
    status: str
    latency_ms: float = 0.0
    message: str = ""


def _pool_stats() -> Dict[str, Any]:
    pool = async_engine.pool
    stats: Dict[str, Any] = {"status": pool.status()}
    for name in ("size", "checkedin", "checkedout", "overflow"):
        fn = getattr(pool, name, None)
        if callable(fn):
            stats[name] = fn()
    return stats


async def check_database_health() -> ComponentHealth:
    """Check the session store with a trivial query."""
    start = time.time()

    try:
        async def _ping():
            async with async_engine.connect() as conn:
                return (await conn.execute(text("SELECT 1"))).scalar()

        result = await asyncio.wait_for(_ping(), timeout=CHECK_TIMEOUT_SECONDS)
        latency_ms = (time.time() - start) * 1000
        if result != 1:
            return ComponentHealth(
                status="unhealthy",
                latency_ms=latency_ms,
                message="Database query returned unexpected result"
            )
        return ComponentHealth(status="healthy", latency_ms=latency_ms, message="ok")

    except asyncio.TimeoutError:
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message="Database connection timeout"
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message=f"Database error: {type(e).__name__}"
        )


async def check_queue_health() -> ComponentHealth:
    """Check the notification queue. Failures only degrade: notifications are best-effort."""
    start = time.time()
    client = redis_from_url(settings.REDIS_URL)
    try:
        await asyncio.wait_for(client.ping(), timeout=CHECK_TIMEOUT_SECONDS)
        return ComponentHealth(status="healthy", latency_ms=(time.time() - start) * 1000, message="ok")
    except Exception as e:
        logger.warning(f"Queue health check failed: {e}")
        return ComponentHealth(
            status="degraded",
            latency_ms=(time.time() - start) * 1000,
            message=f"Queue error: {type(e).__name__}"
        )
    finally:
        await client.aclose()


@router.get("/health", response_model=HealthStatus)
async def health_check(response: Response):
    """
    Full health check endpoint.
    Returns status of all components.
    """
    timestamp = time.time()
    checks = {}
    overall_status = "healthy"

    db_health, queue_health = await asyncio.gather(check_database_health(), check_queue_health())
    for name, component in (("database", db_health), ("queue", queue_health)):
        checks[name] = {
            "status": component.status,
            "latency_ms": round(component.latency_ms, 2),
            "message": component.message
        }

    # Determine overall status
    statuses = [c["status"] for c in checks.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif "degraded" in statuses:
        overall_status = "degraded"
        response.status_code = status.HTTP_200_OK
    else:
        response.status_code = status.HTTP_200_OK

    return HealthStatus(
        status=overall_status,
        timestamp=timestamp,
        checks=checks
    )


@router.get("/health/live")
async def liveness_probe():
    """
    Kubernetes liveness probe.
    Returns 200 if the application is running.
    Does NOT check external dependencies.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_probe(response: Response):
    """
    Kubernetes readiness probe.
    Returns 200 only if the application can serve traffic.
    """
    db_health = await check_database_health()

    if db_health.status == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "reason": db_health.message
        }

    return {"status": "ready"}


@router.get("/health/db")
async def database_health(response: Response):
    """
    Detailed database health check.
    Returns pool statistics and connection status.
    """
    db_health = await check_database_health()
    if db_health.status != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": db_health.status, "message": db_health.message}

    return {
        "status": "healthy",
        "latency_ms": round(db_health.latency_ms, 2),
        "pool": _pool_stats()
    }
